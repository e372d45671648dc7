"""
Playlist Session Controller.

Owns the in-memory ``SessionState`` of the currently selected playlist and
keeps it in step with storage.

Flow:
    select_collection(name) ──load──▶ ReplaceAll(loaded or initial)
    dispatch(action) ──reduce──▶ new state ──debounce──▶ save(name, state)
    save_current_as(name) ──save + register──▶ reset to initial
    delete_collection(name) ──delete + unregister──▶ reset if selected

Ordering rules (single event loop, no locks):
1. Every load captures a generation number; a result whose generation is
   no longer current belongs to a stale selection and is discarded.
2. Each state change restarts one debounce task bound to the selected
   name.  When it fires it rechecks the name and writes the *current*
   state, so a failed write is retried by the next quiet window.
3. Changing the selection cancels the pending debounce task and writes the
   previous playlist's state under the previous name straight away; a
   write never targets a name other than the one that was selected when
   the edit happened.
4. Hydration (the ReplaceAll from a load) is never written back.

Failures reach the UI through ``on_error`` once per failed attempt.  The
in-memory state is never rolled back because a write failed.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from typing import Optional

from setlist.config import settings
from setlist.core.history import (
    INITIAL_STATE,
    Action,
    Add,
    ReplaceAll,
    can_redo,
    can_undo,
    reduce,
)
from setlist.errors import SetlistError
from setlist.models.playlist import Item, SessionState
from setlist.services.collections import CollectionPersistence, validate_collection_name

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, str, SetlistError], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_item_id() -> str:
    return uuid.uuid4().hex


def _log_error(operation: str, name: str, exc: SetlistError) -> None:
    logger.warning("⚠️ Playlist %s failed for %s: %s", operation, name, exc)


class SessionController:
    """
    Edit-session orchestrator for one UI.

    Usage:
        controller = SessionController(CollectionPersistence(KeyedStore(kv)))
        await controller.select_collection("roadtrip")
        controller.add_item("Song A", secondary="Artist")
        controller.dispatch(Undo())
        await controller.save_current_as("roadtrip")
    """

    def __init__(
        self,
        playlists: CollectionPersistence,
        *,
        debounce_seconds: float | None = None,
        on_error: Optional[ErrorCallback] = None,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_item_id,
    ) -> None:
        if debounce_seconds is None:
            debounce_seconds = settings.persist_debounce_seconds
        self._playlists = playlists
        self._debounce_seconds = debounce_seconds
        self._on_error = on_error or _log_error
        self._clock = clock
        self._id_factory = id_factory

        self._state: SessionState = INITIAL_STATE
        self._selected: str | None = None
        self._hydrated = False
        self._load_generation = 0

        self._persist_task: asyncio.Task[None] | None = None
        self._writes: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def selected_name(self) -> str | None:
        return self._selected

    @property
    def is_loading(self) -> bool:
        """True between selecting a playlist and its state being applied."""
        return self._selected is not None and not self._hydrated

    @property
    def can_undo(self) -> bool:
        return can_undo(self._state)

    @property
    def can_redo(self) -> bool:
        return can_redo(self._state)

    @property
    def has_pending_write(self) -> bool:
        return (self._persist_task is not None and not self._persist_task.done()) or bool(self._writes)

    # =========================================================================
    # Selection
    # =========================================================================

    async def select_collection(self, name: str) -> SessionState:
        """Make *name* the active playlist and load its stored state.

        A later selection supersedes this one: if another select happens
        while this load is pending, this load's result is dropped.  The
        session shows the empty state until the load lands, and keeps it if
        the load fails.
        """
        validate_collection_name(name)
        self._flush_pending()

        self._load_generation += 1
        generation = self._load_generation
        self._selected = name
        self._hydrated = False
        self._state = INITIAL_STATE

        try:
            loaded = await self._playlists.load(name)
        except SetlistError as exc:
            if generation == self._load_generation:
                self._on_error("load", name, exc)
            return self._state

        if generation != self._load_generation:
            logger.debug("⚠️ Discarding stale load for %s", name)
            return self._state

        self._state = reduce(self._state, ReplaceAll(loaded if loaded is not None else INITIAL_STATE))
        self._hydrated = True
        logger.debug("✅ Selected %s (%d items)", name, len(self._state.present))
        return self._state

    def _reset(self) -> None:
        self._load_generation += 1
        self._state = INITIAL_STATE
        self._selected = None
        self._hydrated = False

    # =========================================================================
    # Edits
    # =========================================================================

    def dispatch(self, action: Action) -> SessionState:
        """Reduce *action* into the session and schedule a write if it changed anything."""
        new_state = reduce(self._state, action)
        if new_state is self._state:
            return new_state
        self._state = new_state
        if self._selected is not None and self._hydrated:
            self._schedule_persist(self._selected)
        return new_state

    def add_item(
        self,
        title: str,
        secondary: str | None = None,
        duration: float | None = None,
    ) -> Item:
        """Build an ``Item`` with a fresh id and timestamp, and dispatch ``Add``.

        ``added_at`` never goes backwards within the present list, even if
        the wall clock does.
        """
        latest = max((item.added_at for item in self._state.present), default=0)
        item = Item(
            id=self._id_factory(),
            title=title.strip(),
            secondary=secondary.strip() if secondary else None,
            duration=duration,
            added_at=max(self._clock(), latest),
        )
        self.dispatch(Add(item))
        return item

    # =========================================================================
    # Debounced persistence
    # =========================================================================

    def _schedule_persist(self, name: str) -> None:
        self._cancel_persist()
        self._persist_task = asyncio.get_running_loop().create_task(
            self._persist_when_quiet(name), name=f"setlist-persist:{name}"
        )

    def _cancel_persist(self) -> bool:
        task = self._persist_task
        self._persist_task = None
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    async def _persist_when_quiet(self, name: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        if self._persist_task is asyncio.current_task():
            self._persist_task = None
        if name != self._selected or not self._hydrated:
            logger.debug("⚠️ Dropping debounced write for deselected %s", name)
            return
        self._start_write(name, self._state)

    def _start_write(self, name: str, state: SessionState) -> None:
        """Issue a write as its own task so cancelling a timer never interrupts it."""
        task = asyncio.get_running_loop().create_task(self._write(name, state), name=f"setlist-write:{name}")
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _write(self, name: str, state: SessionState) -> None:
        try:
            await self._playlists.save(name, state)
        except SetlistError as exc:
            self._on_error("persist", name, exc)

    def _flush_pending(self) -> None:
        """Turn a pending debounce into an immediate write for the same name."""
        if self._cancel_persist() and self._selected is not None and self._hydrated:
            self._start_write(self._selected, self._state)

    def _reschedule_after_failure(self, selected: str | None, was_pending: bool) -> None:
        """Put back a debounce cancelled for an explicit operation that then failed."""
        if was_pending and selected is not None and selected == self._selected and self._hydrated:
            self._schedule_persist(selected)

    async def _drain_writes(self) -> None:
        while self._writes:
            await asyncio.gather(*list(self._writes))

    async def flush(self) -> None:
        """Write any pending change now and wait for in-flight writes."""
        self._flush_pending()
        await self._drain_writes()

    async def aclose(self) -> None:
        """Flush and stop; the controller can still be used afterwards."""
        await self.flush()

    # =========================================================================
    # Explicit save / delete
    # =========================================================================

    async def save_current_as(self, name: str) -> None:
        """Publish the current playlist under *name*, register it, and start fresh.

        The session is deselected afterwards so the emptied state is never
        written back over what was just saved.
        """
        validate_collection_name(name)
        selected = self._selected
        was_pending = self._cancel_persist()
        await self._drain_writes()
        try:
            await self._playlists.save(name, self._state)
            await self._playlists.register(name)
        except SetlistError as exc:
            self._on_error("save", name, exc)
            self._reschedule_after_failure(selected, was_pending)
            raise
        logger.info("✅ Saved playlist %s (%d items)", name, len(self._state.present))
        self._reset()

    async def delete_collection(self, name: str) -> None:
        """Delete *name* from storage and the registry; reset if it is selected."""
        validate_collection_name(name)
        selected = self._selected
        was_pending = name == selected and self._cancel_persist()
        await self._drain_writes()
        try:
            await self._playlists.delete(name)
            await self._playlists.unregister(name)
        except SetlistError as exc:
            self._on_error("delete", name, exc)
            self._reschedule_after_failure(selected, was_pending)
            raise
        logger.info("✅ Deleted playlist %s", name)
        if name == self._selected:
            self._reset()
