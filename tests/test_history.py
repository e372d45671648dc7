"""
Tests for the playlist history reducer.

Covers the add/undo/redo walk, identity no-ops, redo truncation,
hydration via ReplaceAll, and the recorded-history behaviour of removing
an id that is not present.
"""
from __future__ import annotations

import pytest

from setlist.core.history import (
    INITIAL_STATE,
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
from setlist.models.playlist import Item, SessionState


def _item(item_id: str, added_at: int = 1000) -> Item:
    return Item(id=item_id, title=f"Song {item_id.upper()}", added_at=added_at)


A = _item("a")
B = _item("b", added_at=2000)
C = _item("c", added_at=3000)


ACTION_SEQUENCES = [
    pytest.param([Add(A), Add(B), Remove("a"), Add(C)], id="add-remove"),
    pytest.param([Add(A), Clear(), Add(B), Clear(), Clear()], id="clear"),
    pytest.param([Add(A), Remove("zzz"), Remove("a"), Remove("a")], id="remove-absent"),
    pytest.param([Add(A), Add(B), Add(C), Undo(), Undo(), Undo()], id="deep-redo"),
    pytest.param([Add(A), Add(B), Undo(), Undo(), Redo(), Add(C), Undo(), Clear()], id="mixed"),
    pytest.param([Undo(), Redo(), Add(A), Undo(), Redo(), Redo()], id="noops"),
]


def _apply(state: SessionState, *actions) -> SessionState:
    for action in actions:
        state = reduce(state, action)
    return state


# =============================================================================
# Add / Undo / Redo walk
# =============================================================================


class TestUndoRedoWalk:
    """Step through the canonical add, add, undo, redo sequence."""

    def test_first_add_pushes_empty_present(self):
        state = reduce(INITIAL_STATE, Add(A))
        assert state.present == (A,)
        assert state.past == ((),)
        assert state.future == ()

    def test_second_add_stacks_history(self):
        state = _apply(INITIAL_STATE, Add(A), Add(B))
        assert state.present == (A, B)
        assert state.past == ((), (A,))
        assert state.future == ()

    def test_undo_moves_present_to_future(self):
        state = _apply(INITIAL_STATE, Add(A), Add(B), Undo())
        assert state.present == (A,)
        assert state.past == ((),)
        assert state.future == ((A, B),)

    def test_redo_restores(self):
        state = _apply(INITIAL_STATE, Add(A), Add(B), Undo(), Redo())
        assert state.present == (A, B)
        assert state.past == ((), (A,))
        assert state.future == ()

    def test_undo_twice_then_redo_order(self):
        """Redo replays nearest-undo first."""
        state = _apply(INITIAL_STATE, Add(A), Add(B), Undo(), Undo())
        assert state.present == ()
        assert state.future == ((A,), (A, B))
        state = reduce(state, Redo())
        assert state.present == (A,)
        assert state.future == ((A, B),)

    @pytest.mark.parametrize("actions", ACTION_SEQUENCES)
    def test_undo_then_redo_is_identity(self, actions):
        """At every step, Undo then Redo (and Redo then Undo) restores the whole state."""
        state = INITIAL_STATE
        for action in actions:
            state = reduce(state, action)
            if can_undo(state):
                assert _apply(state, Undo(), Redo()) == state
            if can_redo(state):
                assert _apply(state, Redo(), Undo()) == state

    def test_redo_stack_three_deep(self):
        state = _apply(INITIAL_STATE, Add(A), Add(B), Add(C), Undo(), Undo(), Undo())
        assert state.future == ((A,), (A, B), (A, B, C))
        assert _apply(state, Redo(), Redo(), Redo()).present == (A, B, C)


# =============================================================================
# No-ops
# =============================================================================


class TestNoOps:
    """Undo/Redo with nothing to move return the very same object."""

    def test_undo_on_empty_past_is_identity(self):
        state = SessionState(present=(A,))
        assert reduce(state, Undo()) is state

    def test_redo_on_empty_future_is_identity(self):
        state = reduce(INITIAL_STATE, Add(A))
        assert reduce(state, Redo()) is state

    def test_can_undo_and_can_redo(self):
        assert not can_undo(INITIAL_STATE)
        assert not can_redo(INITIAL_STATE)
        state = reduce(INITIAL_STATE, Add(A))
        assert can_undo(state)
        assert not can_redo(state)
        state = reduce(state, Undo())
        assert not can_undo(state)
        assert can_redo(state)


# =============================================================================
# Mutations
# =============================================================================


class TestMutations:
    """Add/Remove/Clear record history and truncate redo."""

    @pytest.mark.parametrize("action", [Add(C), Remove("a"), Clear()])
    def test_mutation_clears_future(self, action):
        state = _apply(INITIAL_STATE, Add(A), Add(B), Undo())
        assert state.future
        after = reduce(state, action)
        assert after.future == ()
        assert after.past == state.past + (state.present,)

    def test_remove_drops_every_item_with_id(self):
        dup = Item(id="a", title="Other A", added_at=5)
        state = _apply(INITIAL_STATE, Add(A), Add(B), Add(dup), Remove("a"))
        assert state.present == (B,)

    def test_remove_absent_id_still_records_history(self):
        state = reduce(INITIAL_STATE, Add(A))
        after = reduce(state, Remove("zzz"))
        assert after is not state
        assert after.present == (A,)
        assert after.past == state.past + ((A,),)
        assert reduce(after, Undo()).present == (A,)

    def test_clear_empties_present(self):
        state = _apply(INITIAL_STATE, Add(A), Add(B), Clear())
        assert state.present == ()
        assert reduce(state, Undo()).present == (A, B)

    def test_input_state_is_not_modified(self):
        state = reduce(INITIAL_STATE, Add(A))
        reduce(state, Add(B))
        assert state.present == (A,)
        assert INITIAL_STATE.present == ()


# =============================================================================
# ReplaceAll / unknown actions
# =============================================================================


class TestReplaceAll:
    """Hydration adopts the given state verbatim."""

    def test_replace_all_returns_given_state(self):
        loaded = SessionState(present=(B,), past=((), (A,)), future=((C,),))
        current = reduce(INITIAL_STATE, Add(A))
        assert reduce(current, ReplaceAll(loaded)) is loaded

    def test_unknown_action_raises(self):
        with pytest.raises(TypeError):
            reduce(INITIAL_STATE, object())  # type: ignore[arg-type]
