"""Typed JSON adapter over the opaque key-value store.

All Setlist services read and write storage through ``KeyedStore``
exclusively.  It owns the two error conversions of the persistence layer:

- any exception raised by the backend becomes ``StorageUnavailableError``
  (chained as ``__cause__`` and logged once, with no retry);
- a stored value that is not JSON, or that fails model validation, becomes
  ``CorruptDataError`` and is never coerced into an empty default.

Absent keys are not errors: reads return ``None``.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from setlist.errors import CorruptDataError, StorageUnavailableError
from setlist.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def _validation_reason(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{loc}: {first.get('msg', 'invalid value')}"


class KeyedStore:
    """JSON get/set/delete over a ``KeyValueStore`` with typed failures."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    async def _call(self, operation: str, key: str | None, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except Exception as exc:
            logger.error("❌ Storage %s failed for %s: %s", operation, key or "<all keys>", exc)
            raise StorageUnavailableError(operation, key) from exc

    # =========================================================================
    # Raw strings
    # =========================================================================

    async def get_raw(self, key: str) -> str | None:
        return await self._call("read", key, self._kv.get(key))

    async def set_raw(self, key: str, value: str) -> None:
        await self._call("save", key, self._kv.set(key, value))

    async def delete(self, key: str) -> None:
        """Remove *key*; removing an absent key succeeds."""
        await self._call("remove", key, self._kv.delete(key))

    async def delete_many(self, keys: Iterable[str]) -> int:
        """Remove each key in order; returns how many deletes were issued."""
        count = 0
        for key in keys:
            await self.delete(key)
            count += 1
        return count

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        """All keys, or only those starting with *prefix*."""
        keys = await self._call("list keys", None, self._kv.list_keys())
        if prefix is None:
            return list(keys)
        return [k for k in keys if k.startswith(prefix)]

    async def exists(self, key: str) -> bool:
        return await self.get_raw(key) is not None

    # =========================================================================
    # JSON values
    # =========================================================================

    async def get_json(self, key: str) -> Any | None:
        """Read and decode a JSON value; ``None`` when the key is absent."""
        raw = await self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("⚠️ Undecodable value under %s: %s", key, exc)
            raise CorruptDataError(key, f"invalid JSON ({exc.msg})") from exc

    async def set_json(self, key: str, value: Any) -> None:
        await self.set_raw(key, json.dumps(value, ensure_ascii=False))

    # =========================================================================
    # Pydantic models
    # =========================================================================

    async def get_model(self, key: str, model: type[M]) -> M | None:
        """Read *key* and validate it as *model*; ``None`` when absent."""
        raw = await self.get_raw(key)
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            reason = _validation_reason(exc)
            logger.warning("⚠️ Stored %s under %s failed validation: %s", model.__name__, key, reason)
            raise CorruptDataError(key, reason) from exc

    async def set_model(self, key: str, value: BaseModel) -> None:
        await self.set_raw(key, value.model_dump_json(by_alias=True))
