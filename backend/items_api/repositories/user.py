"""Repository for user account persistence."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User


class DuplicateUserError(Exception):
    """Raised when a username or email is already registered."""


class UserRepository:
    """Repository for user-related database operations."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    async def create(self, username: str, password_hash: str, email: str) -> User:
        """Insert a new user and return it with its generated id.

        Raises:
            DuplicateUserError: username or email violates a unique constraint
        """
        user = User(username=username, password_hash=password_hash, email=email)
        self.db_session.add(user)
        try:
            await self.db_session.flush()
        except IntegrityError as exc:
            raise DuplicateUserError(username) from exc
        return user

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        result = await self.db_session.execute(stmt)
        return result.scalar_one_or_none()
