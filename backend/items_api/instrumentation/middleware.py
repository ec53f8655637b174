"""ASGI middleware recording per-request metrics and access logs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from http import HTTPStatus

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_TOTAL,
    HTTP_RESPONSE_SIZE_BYTES,
)

LOGGER = logging.getLogger(__name__)


def status_text(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return str(status_code)


@dataclass(slots=True)
class _ResponseObservation:
    status: int = 200
    size: int = 0
    started: bool = False


def _record_request(method: str, path: str, observation: _ResponseObservation, elapsed: float) -> None:
    try:
        HTTP_REQUEST_DURATION_SECONDS.labels(method, path).observe(elapsed)
        HTTP_REQUESTS_TOTAL.labels(method, path, status_text(observation.status)).inc()
        HTTP_RESPONSE_SIZE_BYTES.labels(method, path).observe(observation.size)
    except Exception:
        LOGGER.exception(
            "Failed to record request metrics for %s %s",
            method,
            path,
            extra={"method": method, "path": path, "status": observation.status},
        )


class MetricsMiddleware:
    """Record duration, status and response size for every HTTP request.

    Exactly one observation set is recorded per request, including requests
    whose handler raised. An exception escaping before the response started
    is counted as 500, which is what the server error handler will send.
    Handlers that never set a status are counted as 200.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        path = scope["path"]
        observation = _ResponseObservation()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                observation.status = message["status"]
                observation.started = True
                await send(message)
            elif message["type"] == "http.response.body":
                await send(message)
                observation.size += len(message.get("body", b""))
            else:
                await send(message)

        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if not observation.started:
                observation.status = HTTPStatus.INTERNAL_SERVER_ERROR
            raise
        finally:
            _record_request(method, path, observation, time.perf_counter() - start)


class AccessLogMiddleware:
    """Log one line per inbound HTTP request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            client = scope.get("client")
            fields = {
                "method": scope["method"],
                "path": scope["path"],
                "remote": f"{client[0]}:{client[1]}" if client else "-",
                "agent": Headers(scope=scope).get("user-agent", ""),
            }
            LOGGER.info(
                "HTTP request method=%s path=%s remote=%s agent=%r",
                fields["method"],
                fields["path"],
                fields["remote"],
                fields["agent"],
                extra=fields,
            )
        await self.app(scope, receive, send)
