"""setlist playlist commands: inspect, export, import and repair playlists.

Each command has an ``_<name>_async`` core that takes an open
``KeyedStore`` (tests call these directly) and a thin synchronous runner
used by the Typer callbacks in ``setlist.cli.app``.

Output::

    $ setlist list
    roadtrip  (12 items)
    gym       (missing)

    $ setlist show roadtrip
    1. Song A - Artist A
    2. Song B

    $ setlist cleanup
    Removed 2 orphaned playlist key(s).
"""
from __future__ import annotations

import asyncio
import logging
import pathlib
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer

from setlist.cli.db import open_store
from setlist.errors import ExitCode, SetlistError
from setlist.models.playlist import ImportResult
from setlist.services.backup import BackupService
from setlist.services.collections import CollectionPersistence
from setlist.services.keyed_store import KeyedStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_store(
    label: str,
    db_url: str | None,
    body: Callable[[KeyedStore], Awaitable[T]],
) -> T:
    """Open the store, run *body*, and map failures onto exit codes."""

    async def _run() -> T:
        async with open_store(db_url) as store:
            return await body(store)

    try:
        return asyncio.run(_run())
    except typer.Exit:
        raise
    except SetlistError as exc:
        typer.echo(f"setlist {label} failed: {exc}")
        logger.error("setlist %s error: %s", label, exc)
        raise typer.Exit(code=exc.exit_code)
    except Exception as exc:
        typer.echo(f"setlist {label} failed: {exc}")
        logger.error("setlist %s error: %s", label, exc, exc_info=True)
        raise typer.Exit(code=ExitCode.INTERNAL_ERROR)


# ---------------------------------------------------------------------------
# Async cores
# ---------------------------------------------------------------------------


async def _list_async(store: KeyedStore) -> list[str]:
    playlists = CollectionPersistence(store)
    lines: list[str] = []
    names = await playlists.list_names()
    width = max((len(n) for n in names), default=0)
    for name in names:
        state = await playlists.load(name)
        detail = "missing" if state is None else f"{len(state.present)} items"
        lines.append(f"{name.ljust(width)}  ({detail})")
    return lines


async def _show_async(store: KeyedStore, name: str) -> list[str] | None:
    state = await CollectionPersistence(store).load(name)
    if state is None:
        return None
    lines = []
    for index, item in enumerate(state.present, start=1):
        line = f"{index}. {item.title}"
        if item.secondary:
            line += f" - {item.secondary}"
        lines.append(line)
    lines.append(f"({len(state.past)} undo, {len(state.future)} redo)")
    return lines


async def _export_async(store: KeyedStore, name: str) -> str | None:
    return await CollectionPersistence(store).export_as_text(name)


async def _import_async(store: KeyedStore, text: str) -> ImportResult:
    return await CollectionPersistence(store).import_from_text(text)


async def _duplicate_async(store: KeyedStore, source: str, target: str) -> bool:
    return await CollectionPersistence(store).duplicate(source, target)


async def _delete_async(store: KeyedStore, name: str) -> bool:
    playlists = CollectionPersistence(store)
    existed = await playlists.exists(name)
    await playlists.delete(name)
    listed = await playlists.unregister(name)
    return existed or listed


async def _cleanup_async(store: KeyedStore) -> int:
    return await CollectionPersistence(store).cleanup_orphans()


async def _stats_async(store: KeyedStore, name: str | None) -> list[str] | None:
    if name is None:
        stats = await BackupService.for_store(store).storage_stats()
        return [
            f"Total keys:       {stats.total_keys}",
            f"Playlists:        {stats.total_playlists}",
            f"Cache size:       {stats.cache_size}",
            f"Preferences set:  {'yes' if stats.has_user_preferences else 'no'}",
            f"Settings set:     {'yes' if stats.has_app_settings else 'no'}",
        ]
    col = await CollectionPersistence(store).stats(name)
    if col is None:
        return None
    lines = [f"Items:     {col.total_items}", f"Duration:  {col.total_duration:.0f}s"]
    if col.oldest_item is not None and col.newest_item is not None:
        lines.append(f"Oldest:    {col.oldest_item.title}")
        lines.append(f"Newest:    {col.newest_item.title}")
    return lines


# ---------------------------------------------------------------------------
# Sync runners (called from Typer callbacks)
# ---------------------------------------------------------------------------


def _require(result: T | None, message: str) -> T:
    if result is None:
        typer.echo(message)
        raise typer.Exit(code=ExitCode.USER_ERROR)
    return result


def run_list(db_url: str | None) -> None:
    lines = run_with_store("list", db_url, _list_async)
    if not lines:
        typer.echo("No playlists.")
    for line in lines:
        typer.echo(line)


def run_show(db_url: str | None, name: str) -> None:
    lines = run_with_store("show", db_url, lambda s: _show_async(s, name))
    for line in _require(lines, f"No playlist named {name!r}."):
        typer.echo(line)


def run_export(db_url: str | None, name: str, output: pathlib.Path | None) -> None:
    text = _require(
        run_with_store("export", db_url, lambda s: _export_async(s, name)),
        f"No playlist named {name!r}.",
    )
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Exported {name!r} to {output}")


def run_import(db_url: str | None, path: pathlib.Path) -> None:
    text = path.read_text(encoding="utf-8")
    result = run_with_store("import", db_url, lambda s: _import_async(s, text))
    if not result.success:
        typer.echo(f"Import failed: {result.error}")
        raise typer.Exit(code=ExitCode.USER_ERROR)
    typer.echo(f"Imported playlist {result.name!r}")


def run_duplicate(db_url: str | None, source: str, target: str) -> None:
    copied = run_with_store("duplicate", db_url, lambda s: _duplicate_async(s, source, target))
    if not copied:
        typer.echo(f"No playlist named {source!r}.")
        raise typer.Exit(code=ExitCode.USER_ERROR)
    typer.echo(f"Copied {source!r} to {target!r}")


def run_delete(db_url: str | None, name: str) -> None:
    existed = run_with_store("delete", db_url, lambda s: _delete_async(s, name))
    typer.echo(f"Deleted {name!r}" if existed else f"Nothing to delete for {name!r}")


def run_cleanup(db_url: str | None) -> None:
    removed = run_with_store("cleanup", db_url, _cleanup_async)
    typer.echo(f"Removed {removed} orphaned playlist key(s).")


def run_stats(db_url: str | None, name: str | None) -> None:
    lines = run_with_store("stats", db_url, lambda s: _stats_async(s, name))
    for line in _require(lines, f"No playlist named {name!r}."):
        typer.echo(line)
