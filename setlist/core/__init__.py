"""
Setlist Core.

1. HISTORY (history.py)
   - Pure undo/redo reducer over SessionState
   - Add / Remove / Clear / Undo / Redo / ReplaceAll

2. SESSION (session.py)
   - Loads the selected playlist into the reducer
   - Debounced write-back, stale-load discarding
   - Explicit save-as and delete with registry upkeep
"""
from __future__ import annotations

from setlist.core.history import (
    INITIAL_STATE,
    Action,
    Add,
    Clear,
    Redo,
    Remove,
    ReplaceAll,
    Undo,
    can_redo,
    can_undo,
    reduce,
)
from setlist.core.session import SessionController

__all__ = [
    "INITIAL_STATE",
    "Action",
    "Add",
    "Clear",
    "Redo",
    "Remove",
    "ReplaceAll",
    "Undo",
    "can_redo",
    "can_undo",
    "reduce",
    "SessionController",
]
