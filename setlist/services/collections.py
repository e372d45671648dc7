"""Named collection persistence.

A collection is a ``SessionState`` stored under ``<prefix><name>``.  The
set of known names lives in one registry entry, a JSON array under the
namespace's registry key.  This module is the only code that reads or
writes the registry; callers go through ``list_names`` / ``save_names`` /
``register`` / ``unregister``.

Layout (playlists)::

    @playlists            -> ["roadtrip", "gym"]
    @playlist:roadtrip    -> {"present": [...], "past": [...], "future": [...]}
    @playlist:gym         -> {...}

Saving a collection and registering its name are independent operations.
The eventual invariant (every registered name has a key, every key has a
registered name) can be broken transiently by a crash between the two; the
``cleanup_orphans`` sweep removes keys nobody lists.  Registered names with
no stored state simply load as ``None``.

Registry updates are read-modify-write with no compare-and-swap: two
near-simultaneous registrations are last-writer-wins.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter, ValidationError

from setlist.errors import CorruptDataError, InvalidCollectionNameError, InvalidImportError
from setlist.models.playlist import (
    EXPORT_VERSION,
    CollectionStats,
    ExportDocument,
    ImportResult,
    Item,
    SessionState,
)
from setlist.services.keyed_store import KeyedStore

logger = logging.getLogger(__name__)

_ITEMS_ADAPTER: TypeAdapter[tuple[Item, ...]] = TypeAdapter(tuple[Item, ...])


@dataclass(frozen=True)
class CollectionNamespace:
    """Key layout for one family of named collections."""

    prefix: str
    registry_key: str
    separator: str = ":"

    def __post_init__(self) -> None:
        if not self.prefix.endswith(self.separator):
            raise ValueError(f"prefix {self.prefix!r} must end with {self.separator!r}")
        if self.registry_key.startswith(self.prefix):
            raise ValueError("registry key must not fall inside the collection prefix")


PLAYLISTS = CollectionNamespace(prefix="@playlist:", registry_key="@playlists")


def validate_collection_name(name: str, namespace: CollectionNamespace = PLAYLISTS) -> str:
    """Return *name* unchanged or raise ``InvalidCollectionNameError``."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidCollectionNameError(str(name), "name must be a non-empty string")
    if namespace.separator in name:
        raise InvalidCollectionNameError(name, f"{namespace.separator!r} is reserved")
    return name


def collection_key(name: str, namespace: CollectionNamespace = PLAYLISTS) -> str:
    """Storage key for *name*.  Pure; rejects names that could collide."""
    return namespace.prefix + validate_collection_name(name, namespace)


def dedupe_names(names: list[str]) -> list[str]:
    """Drop repeats, keeping each name at its first position."""
    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            out.append(name)
    return out


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_import_document(text: str) -> tuple[str, tuple[Item, ...]]:
    """Validate an export document and return ``(name, items)``.

    Raises InvalidImportError with a human-readable reason; nothing is
    written by this function.
    """
    try:
        data: Any = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        raise InvalidImportError(f"Not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidImportError("Import document must be a JSON object")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise InvalidImportError("Import document is missing a non-empty 'name'")

    raw_items = data.get("items")
    if not isinstance(raw_items, list):
        raise InvalidImportError("Import document 'items' must be a list")

    try:
        items = _ITEMS_ADAPTER.validate_python(raw_items)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidImportError(f"Invalid item at items.{loc}: {first.get('msg')}") from exc

    try:
        validate_collection_name(name)
    except InvalidCollectionNameError as exc:
        raise InvalidImportError(str(exc)) from exc

    return name, items


class CollectionPersistence:
    """
    Save/load/list named collections in one namespace.

    Usage:
        playlists = CollectionPersistence(KeyedStore(kv))
        await playlists.save("roadtrip", state)
        await playlists.register("roadtrip")
        state = await playlists.load("roadtrip")
    """

    def __init__(self, store: KeyedStore, namespace: CollectionNamespace = PLAYLISTS) -> None:
        self._store = store
        self.namespace = namespace

    def key_for(self, name: str) -> str:
        return collection_key(name, self.namespace)

    # =========================================================================
    # Collection entries
    # =========================================================================

    async def save(self, name: str, state: SessionState) -> None:
        """Write *state* under *name*.  Does not touch the registry."""
        key = self.key_for(name)
        await self._store.set_model(key, state)
        logger.debug(
            "✅ Saved %s (%d items, %d undo, %d redo)",
            key, len(state.present), len(state.past), len(state.future),
        )

    async def load(self, name: str) -> SessionState | None:
        """Read *name*; ``None`` when never saved, ``CorruptDataError`` when unreadable."""
        return await self._store.get_model(self.key_for(name), SessionState)

    async def delete(self, name: str) -> None:
        """Remove the stored state for *name*.  Idempotent."""
        await self._store.delete(self.key_for(name))

    async def exists(self, name: str) -> bool:
        return await self._store.exists(self.key_for(name))

    # =========================================================================
    # Registry
    # =========================================================================

    async def list_names(self) -> list[str]:
        """Registered names in registry order; ``[]`` when no registry exists yet."""
        key = self.namespace.registry_key
        names = await self._store.get_json(key)
        if names is None:
            return []
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise CorruptDataError(key, "registry must be a JSON array of strings")
        return names

    async def save_names(self, names: list[str]) -> list[str]:
        """Overwrite the registry with *names*, deduplicated in first-seen order."""
        cleaned = dedupe_names(list(names))
        await self._store.set_json(self.namespace.registry_key, cleaned)
        return cleaned

    async def register(self, name: str) -> bool:
        """Append *name* to the registry if absent.  Returns True if it was added."""
        validate_collection_name(name, self.namespace)
        names = await self.list_names()
        if name in names:
            return False
        await self.save_names([*names, name])
        return True

    async def unregister(self, name: str) -> bool:
        """Remove *name* from the registry.  Returns True if it was listed."""
        names = await self.list_names()
        if name not in names:
            return False
        await self.save_names([n for n in names if n != name])
        return True

    # =========================================================================
    # Copy / export / import
    # =========================================================================

    async def duplicate(self, source: str, target: str) -> bool:
        """Copy *source* to *target* and register *target*.

        Returns False, writing nothing, when *source* has no stored state.
        """
        self.key_for(target)
        state = await self.load(source)
        if state is None:
            logger.info("⚠️ Duplicate skipped: %s has no stored state", source)
            return False
        await self.save(target, state)
        await self.register(target)
        logger.info("✅ Duplicated %s → %s", source, target)
        return True

    async def export_as_text(self, name: str) -> str | None:
        """Portable JSON document for *name* (present items only), or None."""
        state = await self.load(name)
        if state is None:
            return None
        doc = ExportDocument(name=name, items=state.present, exported_at=_utc_iso(), version=EXPORT_VERSION)
        return json.dumps(doc.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)

    async def import_from_text(self, text: str) -> ImportResult:
        """Create (or overwrite) a collection from an export document.

        The document is fully validated before anything is written.  Malformed
        documents return a failed ``ImportResult``; storage failures propagate.
        """
        try:
            name, items = parse_import_document(text)
        except InvalidImportError as exc:
            logger.info("⚠️ Import rejected: %s", exc.reason)
            return ImportResult.failed(exc.reason)

        await self.save(name, SessionState(present=items))
        await self.register(name)
        logger.info("✅ Imported %s (%d items)", name, len(items))
        return ImportResult.ok(name)

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def cleanup_orphans(self) -> int:
        """Delete collection keys whose name is not registered.

        Registered names without a stored key are left in the registry.
        Returns the number of keys removed.
        """
        stored = await self._store.list_keys(self.namespace.prefix)
        expected = {self.namespace.prefix + name for name in await self.list_names()}
        orphaned = [key for key in stored if key not in expected]
        if orphaned:
            await self._store.delete_many(orphaned)
            logger.info("✅ Cleaned up %d orphaned collection key(s)", len(orphaned))
        return len(orphaned)

    async def load_all(self) -> list[tuple[str, SessionState]]:
        """Every registered collection that has stored state, in registry order."""
        out: list[tuple[str, SessionState]] = []
        for name in await self.list_names():
            state = await self.load(name)
            if state is not None:
                out.append((name, state))
        return out

    async def stats(self, name: str) -> CollectionStats | None:
        """Item count, total duration and oldest/newest item for *name*."""
        state = await self.load(name)
        if state is None:
            return None
        items = state.present
        if not items:
            return CollectionStats(total_items=0, total_duration=0.0)
        return CollectionStats(
            total_items=len(items),
            total_duration=float(sum(item.duration or 0 for item in items)),
            oldest_item=min(items, key=lambda item: item.added_at),
            newest_item=max(items, key=lambda item: item.added_at),
        )

    async def cache_info(self) -> dict[str, int]:
        """Counts of collection keys and registry presence."""
        keys = await self._store.list_keys()
        collection_keys = [k for k in keys if k.startswith(self.namespace.prefix)]
        has_registry = self.namespace.registry_key in keys
        return {
            "collection_keys": len(collection_keys),
            "registry_keys": 1 if has_registry else 0,
            "total_keys": len(keys),
        }

    async def clear_cache(self) -> int:
        """Remove every collection key and the registry.  Returns keys removed."""
        keys = await self._store.list_keys()
        doomed = [
            k for k in keys
            if k.startswith(self.namespace.prefix) or k == self.namespace.registry_key
        ]
        await self._store.delete_many(doomed)
        logger.info("✅ Cleared %d collection cache key(s)", len(doomed))
        return len(doomed)
