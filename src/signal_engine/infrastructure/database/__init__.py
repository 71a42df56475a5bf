"""
Database Infrastructure
=======================

Manages database connections, session lifecycle, and engine configuration
for the relational embedding store.

Uses SQLAlchemy 2.0 async; asyncpg for PostgreSQL, aiosqlite for SQLite.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from signal_engine.config import settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    SQLAlchemy 2.0 style using DeclarativeBase.
    """
    pass


# Global engine and session maker
_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If engine has not been initialized
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_database() first.")
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the session factory used by the relational embedding store."""
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _session_maker


def init_database(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Initialize the database engine and session maker.

    Should be called during application startup, or by tests with a
    sqlite+aiosqlite URL.

    Args:
        database_url: Override for settings.database_url
    """
    global _engine, _session_maker

    # asyncpg expects ssl= rather than libpq's sslmode=
    url = (database_url or settings.database_url).replace("sslmode=", "ssl=")

    engine_kwargs = {"echo": settings.debug}
    if not url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )

    _engine = create_async_engine(url, **engine_kwargs)
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


async def close_database() -> None:
    """
    Close the database engine and dispose of connections.

    Should be called during application shutdown.
    """
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None


async def create_tables() -> None:
    """
    Create all database tables.

    Intended for development and tests; production uses migrations.
    """
    # Registers the embedding table on Base.metadata
    from signal_engine.embeddings.infrastructure import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
