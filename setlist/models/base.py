"""Shared Pydantic base with camelCase wire-format serialization."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


class CamelModel(BaseModel):
    """Immutable base model that serializes to camelCase in storage.

    - Python code uses snake_case field names (PEP 8)
    - Stored JSON uses camelCase (``addedAt``, ``exportedAt``), matching
      what the mobile client has always written
    - ``model_dump_json(by_alias=True)`` is the storage form
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
