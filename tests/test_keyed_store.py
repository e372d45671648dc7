"""Tests for KeyedStore error conversion and JSON/model helpers."""
from __future__ import annotations

import pytest

from setlist.errors import CorruptDataError, ExitCode, StorageUnavailableError
from setlist.models.playlist import Item, SessionState
from setlist.services.keyed_store import KeyedStore


@pytest.mark.asyncio
async def test_absent_key_reads_none(store: KeyedStore) -> None:
    assert await store.get_raw("nope") is None
    assert await store.get_json("nope") is None
    assert await store.get_model("nope", SessionState) is None
    assert await store.exists("nope") is False


@pytest.mark.asyncio
async def test_json_round_trip(store: KeyedStore) -> None:
    await store.set_json("@k", {"a": [1, 2], "b": "é"})
    assert await store.get_json("@k") == {"a": [1, 2], "b": "é"}
    assert await store.exists("@k") is True


@pytest.mark.asyncio
async def test_model_is_stored_camel_case(store: KeyedStore, kv) -> None:
    state = SessionState(present=(Item(id="a", title="Song A", added_at=7),))
    await store.set_model("@k", state)
    assert '"addedAt":7' in kv.snapshot()["@k"]
    assert await store.get_model("@k", SessionState) == state


@pytest.mark.asyncio
async def test_undecodable_json_is_corrupt(store: KeyedStore, kv) -> None:
    await kv.set("@k", "{not json")
    with pytest.raises(CorruptDataError) as exc_info:
        await store.get_json("@k")
    assert exc_info.value.key == "@k"


@pytest.mark.asyncio
async def test_invalid_model_is_corrupt(store: KeyedStore, kv) -> None:
    await kv.set("@k", '{"present": [{"id": "a"}]}')
    with pytest.raises(CorruptDataError) as exc_info:
        await store.get_model("@k", SessionState)
    assert "present" in exc_info.value.reason


@pytest.mark.asyncio
async def test_backend_failure_becomes_storage_unavailable(store: KeyedStore, kv) -> None:
    kv.failing = True
    with pytest.raises(StorageUnavailableError) as exc_info:
        await store.set_raw("@k", "1")
    err = exc_info.value
    assert err.operation == "save"
    assert err.key == "@k"
    assert err.exit_code == ExitCode.INTERNAL_ERROR
    assert isinstance(err.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_list_keys_failure_has_no_key(store: KeyedStore, kv) -> None:
    kv.failing = True
    with pytest.raises(StorageUnavailableError) as exc_info:
        await store.list_keys()
    assert exc_info.value.key is None


@pytest.mark.asyncio
async def test_list_keys_prefix_filter(store: KeyedStore) -> None:
    for key in ("@playlist:a", "@playlist:b", "@playlists", "@user_preferences"):
        await store.set_raw(key, "1")
    assert sorted(await store.list_keys("@playlist:")) == ["@playlist:a", "@playlist:b"]
    assert len(await store.list_keys()) == 4


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: KeyedStore) -> None:
    await store.set_raw("@k", "1")
    await store.delete("@k")
    await store.delete("@k")
    assert await store.get_raw("@k") is None


@pytest.mark.asyncio
async def test_delete_many_counts(store: KeyedStore) -> None:
    await store.set_raw("@a", "1")
    await store.set_raw("@b", "1")
    assert await store.delete_many(["@a", "@b", "@c"]) == 3
    assert await store.list_keys() == []


@pytest.mark.asyncio
async def test_in_memory_count_and_clear(store: KeyedStore, kv) -> None:
    await store.set_raw("@a", "1")
    await store.set_raw("@b", "2")
    assert kv.count == 2
    kv.clear()
    assert kv.count == 0
    assert await store.list_keys() == []
