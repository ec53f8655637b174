from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from ..config import Settings
from .errors import (
    ExpiredTokenError,
    KeyInitializationError,
    MalformedTokenError,
    SignatureMismatchError,
    SigningError,
    TokenNotYetValidError,
    WrongAlgorithmError,
)
from .models import Identity

LOGGER = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_ISSUER = "items-api"
DEFAULT_LIFETIME = timedelta(hours=24)
GENERATED_KEY_BYTES = 32

_REQUIRED_CLAIMS = ["exp", "iat", "nbf", "sub"]


@dataclass(frozen=True, repr=False)
class SigningKey:
    """Process-wide HMAC secret. Built once at startup and never mutated."""

    secret: bytes = field(compare=False)
    generated: bool = False

    def __repr__(self) -> str:
        return f"SigningKey(generated={self.generated})"

    @classmethod
    def load(cls, secret: str | None) -> SigningKey:
        """Adopt the configured secret, or generate a random one.

        A generated key only lives as long as the process: tokens stop
        validating after a restart and other instances will not accept them.
        """
        if secret:
            return cls(secret=secret.encode("utf-8"))

        try:
            generated = secrets.token_bytes(GENERATED_KEY_BYTES)
        except (NotImplementedError, OSError) as exc:
            raise KeyInitializationError("failed to generate JWT signing key") from exc

        LOGGER.warning(
            "JWT_SECRET not set, generated random key. Tokens will not survive a restart "
            "and are not shared between instances; this is not suitable for production."
        )
        return cls(secret=generated, generated=True)


class TokenService:
    """Issues and validates HS256-signed identity tokens."""

    def __init__(
        self,
        signing_key: SigningKey,
        *,
        issuer: str = DEFAULT_ISSUER,
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._key = signing_key
        self._issuer = issuer
        self._lifetime = lifetime
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_settings(cls, settings: Settings, signing_key: SigningKey) -> TokenService:
        return cls(
            signing_key,
            issuer=settings.token_issuer,
            lifetime=timedelta(seconds=settings.token_lifetime_seconds),
        )

    def issue(self, identity: Identity) -> str:
        now = self._clock()
        claims: dict[str, Any] = {
            "user_id": identity.user_id,
            "username": identity.username,
            "sub": str(identity.user_id),
            "iss": self._issuer,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + self._lifetime).timestamp()),
        }
        try:
            return jwt.encode(claims, self._key.secret, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError("failed to sign token") from exc

    def validate(self, token: str) -> Identity:
        """Return the identity carried by ``token``.

        Raises a ``TokenError`` subclass describing the first failed check.
        The algorithm allow-list is enforced before the signature is computed,
        so a token announcing any other algorithm (including ``none``) fails
        with ``WrongAlgorithmError``.
        """
        try:
            claims = jwt.decode(
                token,
                self._key.secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                leeway=0,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.InvalidAlgorithmError as exc:
            raise WrongAlgorithmError(str(exc)) from exc
        except jwt.InvalidSignatureError as exc:
            raise SignatureMismatchError(str(exc)) from exc
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError(str(exc)) from exc
        except jwt.ImmatureSignatureError as exc:
            raise TokenNotYetValidError(str(exc)) from exc
        except jwt.PyJWTError as exc:
            raise MalformedTokenError(str(exc)) from exc

        user_id = claims.get("user_id")
        username = claims.get("username")
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(username, str):
            raise MalformedTokenError("token is missing identity claims")
        if claims["sub"] != str(user_id):
            raise MalformedTokenError("subject does not match user_id")

        return Identity(user_id=user_id, username=username)
