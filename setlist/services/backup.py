"""Whole-store backup, statistics and start-up housekeeping.

The backup document bundles every registered playlist (with full undo
history), the user preferences and the app settings::

    {
      "playlists": [{"name": "roadtrip", "data": {"present": [...], ...}}],
      "preferences": {...},
      "settings": {...},
      "exportedAt": "2026-10-19T12:00:00Z",
      "version": "1.0"
    }

Import validates the entire document before the first write, then
replaces the playlist registry with exactly the imported names.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from setlist.errors import InvalidCollectionNameError, InvalidImportError
from setlist.models.playlist import EXPORT_VERSION, ImportResult, SessionState
from setlist.models.preferences import AppSettings, UserPreferences
from setlist.services.collections import CollectionPersistence, validate_collection_name
from setlist.services.keyed_store import KeyedStore
from setlist.services.preferences import AppSettingsStore, PreferencesStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageStats:
    """Counts across the whole key-value store."""

    total_keys: int
    total_playlists: int
    cache_size: int
    has_user_preferences: bool
    has_app_settings: bool


class BackupService:
    """Export/import of all data plus store-wide maintenance."""

    def __init__(
        self,
        store: KeyedStore,
        playlists: CollectionPersistence,
        preferences: PreferencesStore,
        app_settings: AppSettingsStore,
    ) -> None:
        self._store = store
        self.playlists = playlists
        self.preferences = preferences
        self.app_settings = app_settings

    @classmethod
    def for_store(cls, store: KeyedStore) -> "BackupService":
        return cls(
            store,
            CollectionPersistence(store),
            PreferencesStore(store),
            AppSettingsStore(store),
        )

    async def export_all_data(self) -> str:
        playlists = await self.playlists.load_all()
        doc = {
            "playlists": [
                {"name": name, "data": state.model_dump(mode="json", by_alias=True)}
                for name, state in playlists
            ],
            "preferences": (await self.preferences.get()).model_dump(mode="json", by_alias=True),
            "settings": (await self.app_settings.get()).model_dump(mode="json", by_alias=True),
            "exportedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "version": EXPORT_VERSION,
        }
        logger.info("✅ Exported backup (%d playlists)", len(playlists))
        return json.dumps(doc, indent=2, ensure_ascii=False)

    @staticmethod
    def _parse_backup(text: str) -> tuple[list[tuple[str, SessionState]], UserPreferences, AppSettings]:
        try:
            data: Any = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise InvalidImportError(f"Not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise InvalidImportError("Backup must be a JSON object")
        if not isinstance(data.get("playlists"), list):
            raise InvalidImportError("Backup 'playlists' must be a list")
        if not isinstance(data.get("preferences"), dict) or not isinstance(data.get("settings"), dict):
            raise InvalidImportError("Backup is missing 'preferences' or 'settings'")

        playlists: list[tuple[str, SessionState]] = []
        for index, entry in enumerate(data["playlists"]):
            if not isinstance(entry, dict):
                raise InvalidImportError(f"playlists[{index}] must be an object")
            name = entry.get("name")
            try:
                validate_collection_name(name)
                state = SessionState.model_validate(entry.get("data"))
            except InvalidCollectionNameError as exc:
                raise InvalidImportError(f"playlists[{index}]: {exc}") from exc
            except ValidationError as exc:
                raise InvalidImportError(f"playlists[{index}] has invalid data: {exc.errors()[0]['msg']}") from exc
            playlists.append((name, state))

        try:
            preferences = UserPreferences.model_validate(data["preferences"])
            settings = AppSettings.model_validate(data["settings"])
        except ValidationError as exc:
            raise InvalidImportError(f"Invalid preferences or settings: {exc.errors()[0]['msg']}") from exc
        return playlists, preferences, settings

    async def import_all_data(self, text: str) -> ImportResult:
        """Restore a backup produced by ``export_all_data``.

        Malformed documents return a failed result and write nothing;
        storage failures propagate.
        """
        try:
            playlists, preferences, settings = self._parse_backup(text)
        except InvalidImportError as exc:
            logger.info("⚠️ Backup import rejected: %s", exc.reason)
            return ImportResult.failed(exc.reason)

        for name, state in playlists:
            await self.playlists.save(name, state)
        await self.playlists.save_names([name for name, _ in playlists])
        await self.preferences.replace(preferences)
        await self.app_settings.replace(settings)
        logger.info("✅ Imported backup (%d playlists)", len(playlists))
        return ImportResult(success=True)

    async def storage_stats(self) -> StorageStats:
        info = await self.playlists.cache_info()
        return StorageStats(
            total_keys=info["total_keys"],
            total_playlists=info["collection_keys"],
            cache_size=info["collection_keys"] + info["registry_keys"],
            has_user_preferences=await self.preferences.exists(),
            has_app_settings=await self.app_settings.exists(),
        )

    async def initialize(self) -> int:
        """Start-up housekeeping: touch last-opened and sweep orphaned playlists."""
        await self.app_settings.update_last_opened()
        cleaned = await self.playlists.cleanup_orphans()
        if cleaned:
            logger.info("✅ Cleaned up %d orphaned playlists", cleaned)
        return cleaned
