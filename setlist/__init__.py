"""Undo/redo playlist editing with keyed async persistence."""
