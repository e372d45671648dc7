"""User preference and app settings documents.

Both are single JSON documents under fixed keys.  Missing fields fall back
to the defaults below so that documents written by older clients still load.
"""
from __future__ import annotations

from typing import Literal

from setlist.models.base import CamelModel

Theme = Literal["dark", "light"]


class UserPreferences(CamelModel):
    """Per-user toggles shown on the settings screen."""
    theme: Theme = "dark"
    auto_save: bool = True
    haptic_feedback: bool = True
    notifications: bool = True


class AppSettings(CamelModel):
    """Install-level bookkeeping."""
    version: str = "1.0.0"
    last_opened: int = 0
    first_time_user: bool = True
