import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .auth.passwords import PasswordHasher
from .auth.router import router as auth_router
from .auth.tokens import SigningKey, TokenService
from .config import Settings, get_settings
from .db import close_db, create_schema, init_db
from .instrumentation import AccessLogMiddleware, MetricsMiddleware
from .items import router as items_router
from .responses import error, success

LOGGER = logging.getLogger(__name__)


def _install_security(app: FastAPI, settings: Settings) -> None:
    """Build the signing key, token service and hasher exactly once.

    Raises KeyInitializationError, which aborts startup.
    """
    signing_key = SigningKey.load(settings.jwt_secret)
    state = cast(Any, app.state)
    state.token_service = TokenService.from_settings(settings, signing_key)
    state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifecycle: startup and shutdown events."""
        active = settings or get_settings()
        LOGGER.info(
            "Starting items API %s", active.app_version, extra={"version": active.app_version}
        )
        _install_security(app, active)
        init_db(active)
        await create_schema(active)
        cast(Any, app.state).started_at = time.monotonic()
        yield
        LOGGER.info("Shutting down items API")
        await close_db()

    app = FastAPI(
        title="Items API",
        version="1.0.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Added last runs first: metrics wrap everything, including the access log.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)

    app.include_router(auth_router)
    app.include_router(items_router)

    @app.get("/api/health", tags=["health"])
    def health(request: Request) -> dict[str, Any]:
        started_at = getattr(request.app.state, "started_at", time.monotonic())
        return success(
            {
                "version": (settings or get_settings()).app_version,
                "uptime": round(time.monotonic() - started_at, 3),
            },
            message="Service is healthy",
        )

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == 404 and message == "Not Found":
        message = "Resource not found"
    return JSONResponse(
        error(message),
        status_code=exc.status_code,
        headers=exc.headers,
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    LOGGER.debug(
        "Rejected request with %d validation errors", len(errors), extra={"errors": errors}
    )
    if errors and all(err.get("loc", ("",))[0] == "body" for err in errors):
        return JSONResponse(error("Invalid request body"), status_code=400)
    return JSONResponse(error("Invalid request"), status_code=400)


app = create_app()
