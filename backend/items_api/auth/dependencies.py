import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .errors import TokenError
from .models import Identity
from .passwords import PasswordHasher
from .tokens import TokenService

LOGGER = logging.getLogger(__name__)

MISSING_TOKEN_DETAIL = "Unauthorized: No token provided"
INVALID_TOKEN_DETAIL = "Unauthorized: Invalid token"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_service(request: Request) -> TokenService:
    service = getattr(request.app.state, "token_service", None)
    if service is None:
        raise RuntimeError("Token service used before the signing key was initialized")
    return service


def get_password_hasher(request: Request) -> PasswordHasher:
    hasher = getattr(request.app.state, "password_hasher", None)
    if hasher is None:
        raise RuntimeError("Password hasher used before application startup")
    return hasher


def extract_bearer_token(header_value: str | None) -> str:
    """Return the token from an ``Authorization: <scheme> <token>`` header.

    Anything other than exactly two space-separated parts yields "".
    """
    if not header_value:
        return ""
    parts = header_value.split(" ")
    if len(parts) == 2:
        return parts[1]
    return ""


class AuthorizationGate:
    """Fail-closed bearer token check for protected routes.

    Install it on a router with ``APIRouter(dependencies=[Depends(gate)])``;
    FastAPI resolves router dependencies before the endpoint, so a rejected
    request never reaches the handler. On success the verified identity is
    returned and also stored on ``request.state.identity``.
    """

    async def __call__(
        self,
        request: Request,
        service: Annotated[TokenService, Depends(get_token_service)],
    ) -> Identity:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if not token:
            raise _unauthorized(MISSING_TOKEN_DETAIL)

        try:
            identity = service.validate(token)
        except TokenError as exc:
            LOGGER.info(
                "Rejected bearer token for %s: %s",
                request.url.path,
                exc.reason,
                extra={"reason": exc.reason, "path": request.url.path},
            )
            raise _unauthorized(INVALID_TOKEN_DETAIL) from exc

        request.state.identity = identity
        return identity


require_identity = AuthorizationGate()


CurrentIdentity = Annotated[Identity, Depends(require_identity)]
