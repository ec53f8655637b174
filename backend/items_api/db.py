"""Database connection and session management."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import Settings, get_settings

LOGGER = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


# Global engine and session maker (initialized on startup)
_engine = None
_async_session_maker = None


def init_db(settings: Settings) -> None:
    """Initialize database engine and session maker.

    Called during application startup.
    """
    global _engine, _async_session_maker

    engine_kwargs: dict[str, object] = {"echo": settings.database_echo}
    if not settings.database_url.startswith("sqlite"):
        engine_kwargs.update(pool_pre_ping=True, pool_size=25, max_overflow=10, pool_recycle=300)

    _engine = create_async_engine(settings.database_url, **engine_kwargs)

    _async_session_maker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(settings: Settings) -> None:
    """Create missing tables, retrying while the database comes up."""
    if _engine is None:
        init_db(settings)
    assert _engine is not None

    # Import models to register them with Base.metadata
    from . import models  # noqa: F401

    attempts = settings.database_connect_attempts
    for attempt in range(1, attempts + 1):
        try:
            async with _engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (OSError, InterfaceError, OperationalError) as exc:
            if attempt == attempts:
                raise RuntimeError(
                    f"failed to connect to database after {attempts} attempts"
                ) from exc
            LOGGER.warning(
                "Failed to connect to database, retrying in %s seconds (attempt %d/%d): %s",
                settings.database_connect_backoff_seconds,
                attempt,
                attempts,
                exc,
            )
            await asyncio.sleep(settings.database_connect_backoff_seconds)
        else:
            LOGGER.info("Database connection established successfully")
            return


async def close_db() -> None:
    """Close database connections.

    Called during application shutdown.
    """
    global _engine, _async_session_maker
    if _engine:
        await _engine.dispose()
        LOGGER.info("Database connection closed")
    _engine = None
    _async_session_maker = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _async_session_maker is None:
        init_db(get_settings())
    assert _async_session_maker is not None
    return _async_session_maker


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Usage:
        @router.get("/items")
        async def list_items(db: Annotated[AsyncSession, Depends(get_db_session)]):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
