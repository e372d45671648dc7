"""Pytest configuration and fixtures."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from setlist.db.database import Base
from setlist.services.collections import CollectionPersistence
from setlist.services.keyed_store import KeyedStore
from setlist.storage.kv import InMemoryKeyValueStore
from setlist.storage.sql import SqlKeyValueStore
from setlist.db import models as _db_models  # noqa: F401


def pytest_configure(config):
    """Ensure asyncio_mode is auto so async fixtures work when pyproject is not in cwd."""
    if hasattr(config.option, "asyncio_mode") and config.option.asyncio_mode is None:
        config.option.asyncio_mode = "auto"


class FlakyKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose calls raise while ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.set_calls: list[tuple[str, str]] = []

    def _check(self) -> None:
        if self.failing:
            raise ConnectionError("backend offline")

    async def get(self, key: str) -> str | None:
        self._check()
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        self._check()
        self.set_calls.append((key, value))
        await super().set(key, value)

    async def delete(self, key: str) -> None:
        self._check()
        await super().delete(key)

    async def list_keys(self) -> list[str]:
        self._check()
        return await super().list_keys()


class GatedKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose reads of selected keys wait for an explicit release."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: dict[str, asyncio.Event] = {}

    def hold(self, key: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[key] = gate
        return gate

    async def get(self, key: str) -> str | None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        return await super().get(key)


@pytest.fixture
def kv() -> FlakyKeyValueStore:
    """Fresh in-memory key-value store for each test."""
    return FlakyKeyValueStore()


@pytest.fixture
def gated_kv() -> GatedKeyValueStore:
    return GatedKeyValueStore()


@pytest.fixture
def store(kv: FlakyKeyValueStore) -> KeyedStore:
    return KeyedStore(kv)


@pytest.fixture
def playlists(store: KeyedStore) -> CollectionPersistence:
    return CollectionPersistence(store)


@pytest_asyncio.fixture
async def sql_kv() -> AsyncGenerator[SqlKeyValueStore, None]:
    """In-memory SQLite key-value store, created fresh and dropped on teardown."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    yield SqlKeyValueStore(factory)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
