"""
SQLAlchemy ORM models for Setlist.

Tables:
- kv_entries: the key-value table behind SqlKeyValueStore
"""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from setlist.db.database import Base


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


class KvEntry(Base):
    """One key and its JSON string value.

    Keys are namespaced by the services (``@playlist:<name>``,
    ``@playlists``, ``@user_preferences`` …); the table knows nothing
    about that layout.
    """
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<KvEntry {self.key!r} {len(self.value)} chars>"
