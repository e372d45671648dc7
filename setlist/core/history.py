"""
Playlist History Reducer.

Pure ``reduce(state, action) -> state`` over a ``SessionState``.  Callers
pass fully formed ``Item`` values; the reducer never reads a clock.

Actions:
    Add(item)          - append to present
    Remove(item_id)    - drop every present item with that id
    Clear()            - empty present
    Undo()             - step back one snapshot
    Redo()             - step forward one snapshot
    ReplaceAll(state)  - adopt a state verbatim (hydration from storage)

Invariants:
    1. Add/Remove/Clear push the pre-action present onto past and empty future.
    2. Undo with empty past and Redo with empty future return the same object.
    3. Undo moves past[-1] into present and pushes the old present onto the
       front of future; Redo is the exact mirror.
    4. Undo followed by Redo restores an identical present.
    5. ReplaceAll never touches past/future beyond what the given state holds.

Remove of an id that is not present still records a history entry, so an
undo right after it is a visible no-op.  This mirrors the shipped client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from setlist.models.playlist import Item, ItemSeq, SessionState


INITIAL_STATE = SessionState()


@dataclass(frozen=True)
class Add:
    item: Item


@dataclass(frozen=True)
class Remove:
    item_id: str


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class ReplaceAll:
    state: SessionState


Action = Union[Add, Remove, Clear, Undo, Redo, ReplaceAll]


def _record(state: SessionState, present: ItemSeq) -> SessionState:
    """Commit a new present, pushing the old one onto past and dropping redo history."""
    return SessionState.model_construct(
        present=present,
        past=state.past + (state.present,),
        future=(),
    )


def reduce(state: SessionState, action: Action) -> SessionState:
    """
    Apply one action to a session state.

    Raises TypeError for objects that are not one of the known actions;
    that is a programming error, not a runtime condition.
    """
    if isinstance(action, Add):
        return _record(state, state.present + (action.item,))

    if isinstance(action, Remove):
        kept = tuple(item for item in state.present if item.id != action.item_id)
        return _record(state, kept)

    if isinstance(action, Clear):
        return _record(state, ())

    if isinstance(action, Undo):
        if not state.past:
            return state
        return SessionState.model_construct(
            present=state.past[-1],
            past=state.past[:-1],
            future=(state.present,) + state.future,
        )

    if isinstance(action, Redo):
        if not state.future:
            return state
        return SessionState.model_construct(
            present=state.future[0],
            past=state.past + (state.present,),
            future=state.future[1:],
        )

    if isinstance(action, ReplaceAll):
        return action.state

    raise TypeError(f"Unknown playlist action: {action!r}")


def can_undo(state: SessionState) -> bool:
    """Check if an Undo would change the state."""
    return len(state.past) > 0


def can_redo(state: SessionState) -> bool:
    """Check if a Redo would change the state."""
    return len(state.future) > 0
