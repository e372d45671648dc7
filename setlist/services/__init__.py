"""Persistence services for Setlist."""
from __future__ import annotations

from setlist.services.backup import BackupService, StorageStats
from setlist.services.collections import (
    PLAYLISTS,
    CollectionNamespace,
    CollectionPersistence,
    collection_key,
    validate_collection_name,
)
from setlist.services.keyed_store import KeyedStore
from setlist.services.preferences import AppSettingsStore, PreferencesStore

__all__ = [
    "BackupService",
    "StorageStats",
    "PLAYLISTS",
    "CollectionNamespace",
    "CollectionPersistence",
    "collection_key",
    "validate_collection_name",
    "KeyedStore",
    "AppSettingsStore",
    "PreferencesStore",
]
