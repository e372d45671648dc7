"""
Playlist models for the Setlist core.

A playlist edit session is a ``SessionState``: the current item list
(``present``) plus the undo stack (``past``, oldest first) and the redo
stack (``future``, nearest-undo first).  All models are frozen, and the
sequences are tuples, so a state can be shared between history snapshots
without copying.

Key concepts:
- Item: one entry in a playlist (immutable once created)
- SessionState: the {present, past, future} record persisted per playlist
- ExportDocument: the portable text form of a playlist (history dropped)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import Field

from setlist.models.base import CamelModel

# Version tag written into every export document.
EXPORT_VERSION = "1.0"


class Item(CamelModel):
    """
    A single playlist entry.

    ``id`` and ``added_at`` are supplied by whoever builds the ``Add``
    action (the session controller); the reducer never invents them.
    """
    id: str = Field(..., min_length=1, description="Opaque unique identifier")
    title: str = Field(..., min_length=1, description="Display title")
    secondary: Optional[str] = Field(default=None, description="Secondary line, e.g. artist")
    duration: Optional[float] = Field(default=None, ge=0, description="Length in seconds")
    added_at: int = Field(..., ge=0, description="Creation time (ms since epoch)")


ItemSeq = tuple[Item, ...]


class SessionState(CamelModel):
    """Undo/redo history for one playlist edit session."""
    present: ItemSeq = ()
    past: tuple[ItemSeq, ...] = ()
    future: tuple[ItemSeq, ...] = ()


class ExportDocument(CamelModel):
    """Portable playlist document produced by ``export_as_text``."""
    name: str
    items: ItemSeq
    exported_at: str
    version: str = EXPORT_VERSION


@dataclass(frozen=True)
class ImportResult:
    """Outcome of an import: ``name`` on success, ``error`` on failure."""

    success: bool
    name: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, name: str) -> "ImportResult":
        return cls(success=True, name=name)

    @classmethod
    def failed(cls, error: str) -> "ImportResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class CollectionStats:
    """Summary figures for the present items of one playlist."""

    total_items: int
    total_duration: float
    oldest_item: Item | None = None
    newest_item: Item | None = None
