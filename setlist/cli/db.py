"""Async storage helpers for the Setlist CLI.

Provides ``open_store()``, an async context manager that initialises the
database for the configured ``SETLIST_DATABASE_URL`` (or an explicit URL)
through ``setlist.db.init_db`` and yields a ``KeyedStore``.  The engine is
closed on exit so the process does not linger with open connections.
"""
from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator

from setlist.db.database import close_db, init_db
from setlist.services.keyed_store import KeyedStore
from setlist.storage.sql import SqlKeyValueStore


@contextlib.asynccontextmanager
async def open_store(url: str | None = None) -> AsyncGenerator[KeyedStore, None]:
    """Open the SQL key-value store for one CLI command."""
    try:
        factory = await init_db(url)
        yield KeyedStore(SqlKeyValueStore(factory))
    finally:
        await close_db()
