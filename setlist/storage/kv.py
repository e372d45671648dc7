"""
Key-value store contract.

Every persistence service in Setlist talks to storage through this
four-call protocol and nothing else.  Implementations give at-least-once
durability per call and no transactional guarantees across calls.

For tests and ephemeral sessions, ``InMemoryKeyValueStore`` is a dict.
For durable storage, ``setlist.storage.sql.SqlKeyValueStore`` keeps the
same interface behind an async SQLAlchemy table.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque async string→string store."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def list_keys(self) -> list[str]: ...


class InMemoryKeyValueStore:
    """
    Dict-backed store.

    Thread-safety is not required for asyncio (single event loop); each
    call completes without yielding.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(self) -> list[str]:
        return list(self._data)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw contents (for testing)."""
        return dict(self._data)

    def clear(self) -> None:
        """Drop all entries (for testing)."""
        self._data.clear()

    @property
    def count(self) -> int:
        """Total number of keys."""
        return len(self._data)
