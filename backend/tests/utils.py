from __future__ import annotations

import base64
import json
import time
from typing import Any

import jwt
from prometheus_client import REGISTRY

TEST_SECRET = "test-secret-with-at-least-32-bytes-of-entropy"
OTHER_SECRET = "another-secret-with-at-least-32-bytes-in-it"


def build_token(
    secret: str = TEST_SECRET,
    *,
    algorithm: str = "HS256",
    user_id: int = 7,
    username: str = "alice",
    issuer: str = "items-api",
    expires_in: int = 3600,
    omit: tuple[str, ...] = (),
) -> str:
    now = int(time.time())
    claims: dict[str, Any] = {
        "user_id": user_id,
        "username": username,
        "sub": str(user_id),
        "iss": issuer,
        "iat": now,
        "nbf": now,
        "exp": now + expires_in,
    }
    for name in omit:
        claims.pop(name, None)
    return jwt.encode(claims, secret, algorithm=algorithm)


def replace_header(token: str, **header: Any) -> str:
    """Swap the JOSE header of ``token`` while keeping payload and signature."""
    _, payload, signature = token.split(".")
    encoded = base64.urlsafe_b64encode(json.dumps(header).encode()).rstrip(b"=").decode()
    return f"{encoded}.{payload}.{signature}"


def sample_value(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def request_total(method: str, path: str) -> float:
    """Sum of http_requests_total across every status label for method/path."""
    total = 0.0
    for metric in REGISTRY.collect():
        if metric.name != "http_requests":
            continue
        for sample in metric.samples:
            if (
                sample.name == "http_requests_total"
                and sample.labels.get("method") == method
                and sample.labels.get("path") == path
            ):
                total += sample.value
    return total
