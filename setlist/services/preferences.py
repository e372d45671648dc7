"""Single-document stores for user preferences and app settings.

Each store keeps one JSON document under a fixed key.  Reads fall back to
defaults when the key is absent; partial saves merge into whatever is
currently stored.  A stored document that fails validation raises
``CorruptDataError`` rather than silently reverting to defaults.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Generic, TypeVar

from setlist.models.preferences import AppSettings, UserPreferences
from setlist.models.base import CamelModel
from setlist.services.keyed_store import KeyedStore

logger = logging.getLogger(__name__)

USER_PREFERENCES_KEY = "@user_preferences"
APP_SETTINGS_KEY = "@app_settings"

D = TypeVar("D", bound=CamelModel)


class DocumentStore(Generic[D]):
    """Defaults-backed document under one key."""

    def __init__(self, store: KeyedStore, key: str, model: type[D]) -> None:
        self._store = store
        self.key = key
        self._model = model

    def defaults(self) -> D:
        return self._model()

    async def get(self) -> D:
        doc = await self._store.get_model(self.key, self._model)
        return doc if doc is not None else self.defaults()

    async def save(self, **changes: Any) -> D:
        """Merge *changes* (snake_case field names) into the stored document."""
        unknown = set(changes) - set(self._model.model_fields)
        if unknown:
            raise ValueError(f"Unknown {self._model.__name__} field(s): {', '.join(sorted(unknown))}")
        current = await self.get()
        updated = self._model.model_validate({**current.model_dump(), **changes})
        await self._store.set_model(self.key, updated)
        logger.debug("✅ Saved %s (%s)", self.key, ", ".join(sorted(changes)) or "no changes")
        return updated

    async def replace(self, doc: D) -> None:
        await self._store.set_model(self.key, doc)

    async def reset(self) -> D:
        doc = self.defaults()
        await self._store.set_model(self.key, doc)
        return doc

    async def exists(self) -> bool:
        return await self._store.exists(self.key)


class PreferencesStore(DocumentStore[UserPreferences]):
    """Theme and toggle preferences."""

    def __init__(self, store: KeyedStore) -> None:
        super().__init__(store, USER_PREFERENCES_KEY, UserPreferences)

    async def get_value(self, field: str) -> Any:
        return getattr(await self.get(), field)

    async def set_value(self, field: str, value: Any) -> UserPreferences:
        return await self.save(**{field: value})


class AppSettingsStore(DocumentStore[AppSettings]):
    """Install-level bookkeeping: version, last opened, first run."""

    def __init__(self, store: KeyedStore) -> None:
        super().__init__(store, APP_SETTINGS_KEY, AppSettings)

    def defaults(self) -> AppSettings:
        return AppSettings(last_opened=int(time.time() * 1000))

    async def update_last_opened(self) -> AppSettings:
        return await self.save(last_opened=int(time.time() * 1000))

    async def complete_first_run(self) -> AppSettings:
        return await self.save(first_time_user=False)

    async def is_first_time_user(self) -> bool:
        return (await self.get()).first_time_user

    async def update_app_version(self, version: str) -> AppSettings:
        return await self.save(version=version)
