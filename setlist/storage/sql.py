"""SQLAlchemy-backed key-value store.

Each call opens its own session and commits before returning, so every
``set``/``delete`` is individually durable and nothing is transactional
across calls, which matches the in-memory store.
"""
from __future__ import annotations

import logging

from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from setlist.db.models import KvEntry, utc_now

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class SqlKeyValueStore:
    """``KeyValueStore`` over the ``kv_entries`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            entry = await session.get(KvEntry, key)
            return entry.value if entry is not None else None

    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite *key* in one statement, so concurrent writers are last-writer-wins."""
        async with self._session_factory() as session:
            dialect = session.bind.dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                raise NotImplementedError(f"No upsert support for dialect {dialect!r}")
            stmt = insert(KvEntry).values(key=key, value=value, updated_at=utc_now())
            stmt = stmt.on_conflict_do_update(
                index_elements=[KvEntry.key],
                set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
            )
            await session.execute(stmt)
            await session.commit()
            logger.debug("✅ Upserted key %s (%d chars)", key, len(value))

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(sa_delete(KvEntry).where(KvEntry.key == key))
            await session.commit()
            if result.rowcount:
                logger.debug("✅ Deleted key %s", key)

    async def list_keys(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(select(KvEntry.key).order_by(KvEntry.key))
            return list(result.scalars().all())
