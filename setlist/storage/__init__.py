"""Key-value backends for the Setlist persistence services."""
from __future__ import annotations

from setlist.storage.kv import InMemoryKeyValueStore, KeyValueStore
from setlist.storage.sql import SqlKeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqlKeyValueStore",
]
