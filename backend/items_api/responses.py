"""Response envelope shared by every endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ApiResponse(BaseModel):
    status: str
    message: str | None = None
    data: Any = None
    error: str | None = None


def success(data: Any = None, message: str | None = None) -> dict[str, Any]:
    return ApiResponse(status="success", message=message, data=data).model_dump(
        mode="json", exclude_none=True
    )


def error(message: str) -> dict[str, Any]:
    return ApiResponse(status="error", error=message).model_dump(mode="json", exclude_none=True)
