"""Pydantic models for Setlist's persisted documents."""
from __future__ import annotations

from setlist.models.base import CamelModel
from setlist.models.playlist import (
    EXPORT_VERSION,
    CollectionStats,
    ExportDocument,
    ImportResult,
    Item,
    ItemSeq,
    SessionState,
)
from setlist.models.preferences import AppSettings, Theme, UserPreferences

__all__ = [
    "CamelModel",
    "EXPORT_VERSION",
    "CollectionStats",
    "ExportDocument",
    "ImportResult",
    "Item",
    "ItemSeq",
    "SessionState",
    "AppSettings",
    "Theme",
    "UserPreferences",
]
