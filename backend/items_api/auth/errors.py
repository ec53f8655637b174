"""Error taxonomy for credential and token handling.

Every ``TokenError`` and ``CredentialError`` collapses to the same opaque 401
at the HTTP boundary. The subclasses and their ``reason`` exist for logs only.
"""

from __future__ import annotations


class CredentialError(Exception):
    """Base class for password hashing and verification failures."""


class HashingError(CredentialError):
    """The password could not be hashed."""


class KeyInitializationError(Exception):
    """The signing key could not be established; the process must not serve."""


class SigningError(Exception):
    """A token could not be signed."""


class TokenError(Exception):
    reason = "invalid"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class MalformedTokenError(TokenError):
    reason = "malformed"


class SignatureMismatchError(TokenError):
    reason = "signature_mismatch"


class ExpiredTokenError(TokenError):
    reason = "expired"


class TokenNotYetValidError(TokenError):
    reason = "not_yet_valid"


class WrongAlgorithmError(TokenError):
    reason = "wrong_algorithm"
