"""Setlist command-line interface."""
