"""bcrypt password hashing."""

from __future__ import annotations

import secrets
import threading

import bcrypt

from .errors import HashingError

DEFAULT_ROUNDS = 14


class PasswordHasher:
    """Salted, adaptive one-way hashing of user passwords.

    Hashes are self-describing (``$2b$<cost>$<salt><digest>``) so verification
    needs nothing but the stored value. Instances are safe to share across
    concurrent requests; their only state is a lazily built decoy hash that
    gives logins for unknown accounts the same bcrypt cost.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds
        self._decoy: str | None = None
        self._decoy_lock = threading.Lock()

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        try:
            digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds))
        except ValueError as exc:
            # bcrypt rejects inputs longer than 72 bytes
            raise HashingError("password could not be hashed") from exc
        return digest.decode("ascii")

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def decoy_hash(self) -> str:
        """Hash of a random password at this hasher's cost, built on first use."""
        with self._decoy_lock:
            if self._decoy is None:
                self._decoy = self.hash(secrets.token_urlsafe(16))
            return self._decoy

    def verify_missing(self, password: str) -> bool:
        """Spend the same bcrypt work as ``verify`` for an account that does not exist.

        Always returns False.
        """
        self.verify(password, self.decoy_hash())
        return False
