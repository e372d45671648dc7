"""
Async SQLAlchemy database setup.

Supports SQLite (default, via aiosqlite) and PostgreSQL (asyncpg).
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from setlist.config import DEFAULT_DATABASE_URL, settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""
    pass


# Global engine and session factory (initialized on startup)
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> str:
    """Get the database URL from settings."""
    url = settings.database_url
    if not url:
        url = DEFAULT_DATABASE_URL
        logger.debug("No database URL configured, using SQLite: %s", url)
    return url


def _redact(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


async def init_db(url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Initialize the engine and session factory, creating tables if missing.

    The schema is a single key-value table, so ``create_all`` is the whole
    migration story.
    """
    global _engine, _async_session_factory

    database_url = url or get_database_url()
    logger.info("Initializing database: %s", _redact(database_url))

    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    _engine = create_async_engine(
        database_url,
        echo=settings.debug,
        connect_args=connect_args,
    )

    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    from setlist.db import models  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized successfully")
    return _async_session_factory


async def close_db() -> None:
    """Close database connection."""
    global _engine, _async_session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection closed")
