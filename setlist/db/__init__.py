"""Database layer for the SQL-backed key-value store."""
from __future__ import annotations

from setlist.db.database import (
    Base,
    close_db,
    get_database_url,
    init_db,
)

__all__ = [
    "Base",
    "close_db",
    "get_database_url",
    "init_db",
]
