"""Setlist CLI subcommands."""
