"""Tests for whole-store backup, statistics and start-up housekeeping."""
from __future__ import annotations

import json

import pytest

from setlist.errors import StorageUnavailableError
from setlist.models.playlist import Item, SessionState
from setlist.models.preferences import UserPreferences
from setlist.services.backup import BackupService
from setlist.services.keyed_store import KeyedStore
from setlist.storage.kv import InMemoryKeyValueStore

STATE = SessionState(
    present=(Item(id="a", title="Song A", added_at=1),),
    past=((),),
)


@pytest.fixture
def backup(store: KeyedStore) -> BackupService:
    return BackupService.for_store(store)


@pytest.mark.asyncio
async def test_export_contains_everything(backup: BackupService) -> None:
    await backup.playlists.save("roadtrip", STATE)
    await backup.playlists.register("roadtrip")
    await backup.preferences.save(theme="light")

    doc = json.loads(await backup.export_all_data())

    assert doc["version"] == "1.0"
    assert doc["exportedAt"].endswith("Z")
    assert doc["playlists"][0]["name"] == "roadtrip"
    assert doc["playlists"][0]["data"]["past"] == [[]]
    assert doc["preferences"]["theme"] == "light"
    assert "firstTimeUser" in doc["settings"]


@pytest.mark.asyncio
async def test_backup_round_trip_into_fresh_store(backup: BackupService) -> None:
    await backup.playlists.save("roadtrip", STATE)
    await backup.playlists.register("roadtrip")
    await backup.preferences.save(theme="light")
    await backup.app_settings.complete_first_run()
    text = await backup.export_all_data()

    target = BackupService.for_store(KeyedStore(InMemoryKeyValueStore()))
    result = await target.import_all_data(text)

    assert result.success is True
    assert await target.playlists.list_names() == ["roadtrip"]
    assert await target.playlists.load("roadtrip") == STATE
    assert (await target.preferences.get()).theme == "light"
    assert await target.app_settings.is_first_time_user() is False


@pytest.mark.asyncio
async def test_import_replaces_registry(backup: BackupService) -> None:
    await backup.playlists.save_names(["old"])
    text = json.dumps({
        "playlists": [{"name": "new", "data": {"present": [], "past": [], "future": []}}],
        "preferences": {},
        "settings": {},
    })

    result = await backup.import_all_data(text)

    assert result.success is True
    assert await backup.playlists.list_names() == ["new"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    [
        "nope",
        "[]",
        '{"playlists": {}, "preferences": {}, "settings": {}}',
        '{"playlists": []}',
        '{"playlists": [1], "preferences": {}, "settings": {}}',
        '{"playlists": [{"name": "a:b", "data": {}}], "preferences": {}, "settings": {}}',
        '{"playlists": [{"name": "a", "data": {"present": 1}}], "preferences": {}, "settings": {}}',
        '{"playlists": [], "preferences": {"theme": "sepia"}, "settings": {}}',
    ],
)
async def test_malformed_backup_writes_nothing(backup: BackupService, kv, text: str) -> None:
    result = await backup.import_all_data(text)
    assert result.success is False
    assert result.error
    assert kv.snapshot() == {}


@pytest.mark.asyncio
async def test_storage_stats(backup: BackupService) -> None:
    empty = await backup.storage_stats()
    assert empty.total_keys == 0
    assert empty.has_user_preferences is False

    await backup.playlists.save("a", STATE)
    await backup.playlists.save("b", STATE)
    await backup.playlists.save_names(["a", "b"])
    await backup.preferences.save(theme="light")

    stats = await backup.storage_stats()
    assert stats.total_keys == 4
    assert stats.total_playlists == 2
    assert stats.cache_size == 3
    assert stats.has_user_preferences is True
    assert stats.has_app_settings is False


@pytest.mark.asyncio
async def test_initialize_touches_settings_and_sweeps(backup: BackupService) -> None:
    await backup.playlists.save("orphan", STATE)

    assert await backup.initialize() == 1
    assert await backup.app_settings.exists() is True
    assert await backup.playlists.exists("orphan") is False


@pytest.mark.asyncio
async def test_export_storage_failure_propagates(backup: BackupService, kv) -> None:
    kv.failing = True
    with pytest.raises(StorageUnavailableError):
        await backup.export_all_data()


def test_default_preferences_serialise_camel_case() -> None:
    assert set(UserPreferences().model_dump(by_alias=True)) == {
        "theme", "autoSave", "hapticFeedback", "notifications",
    }
