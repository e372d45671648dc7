"""Setlist CLI: Typer application root.

Entry point for the ``setlist`` console script.  Operates directly on the
SQL key-value store named by ``--db`` or ``SETLIST_DATABASE_URL``.
"""
from __future__ import annotations

import logging
import pathlib
from typing import Optional

import typer

from setlist.cli.commands import backup
from setlist.cli.commands.playlists import (
    run_cleanup,
    run_delete,
    run_duplicate,
    run_export,
    run_import,
    run_list,
    run_show,
    run_stats,
)
from setlist.config import settings

cli = typer.Typer(
    name="setlist",
    help="Inspect and maintain stored Setlist playlists.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{settings.app_name} {settings.app_version}")
        raise typer.Exit()


@cli.callback()
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None, "--db", help="Async SQLAlchemy URL (defaults to SETLIST_DATABASE_URL)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if (verbose or settings.debug) else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = {"db": db}


@cli.command("list", help="List registered playlists with their item counts.")
def _list_cmd(ctx: typer.Context) -> None:
    run_list(ctx.obj["db"])


@cli.command("show", help="Print the items of one playlist.")
def _show_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Playlist name."),
) -> None:
    run_show(ctx.obj["db"], name)


@cli.command("export", help="Export a playlist as a portable JSON document.")
def _export_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Playlist name."),
    output: Optional[pathlib.Path] = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout."
    ),
) -> None:
    run_export(ctx.obj["db"], name, output)


@cli.command("import", help="Import a playlist from an exported JSON document.")
def _import_cmd(
    ctx: typer.Context,
    path: pathlib.Path = typer.Argument(..., exists=True, dir_okay=False, help="Export file."),
) -> None:
    run_import(ctx.obj["db"], path)


@cli.command("duplicate", help="Copy a playlist (with history) under a new name.")
def _duplicate_cmd(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Existing playlist."),
    target: str = typer.Argument(..., help="New name."),
) -> None:
    run_duplicate(ctx.obj["db"], source, target)


@cli.command("delete", help="Delete a playlist and drop it from the registry.")
def _delete_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Playlist name."),
) -> None:
    run_delete(ctx.obj["db"], name)


@cli.command("cleanup", help="Remove stored playlists that are not in the registry.")
def _cleanup_cmd(ctx: typer.Context) -> None:
    run_cleanup(ctx.obj["db"])


@cli.command("stats", help="Store-wide statistics, or statistics for one playlist.")
def _stats_cmd(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Playlist name (optional)."),
) -> None:
    run_stats(ctx.obj["db"], name)


cli.add_typer(backup.app, name="backup", help="Back up or restore all Setlist data.")


if __name__ == "__main__":
    cli()
