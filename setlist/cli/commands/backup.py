"""setlist backup: export or restore every playlist plus preferences and settings."""
from __future__ import annotations

import logging
import pathlib
from typing import Optional

import typer

from setlist.cli.commands.playlists import run_with_store
from setlist.errors import ExitCode
from setlist.models.playlist import ImportResult
from setlist.services.backup import BackupService
from setlist.services.keyed_store import KeyedStore

logger = logging.getLogger(__name__)

app = typer.Typer(help="Back up or restore all Setlist data.", no_args_is_help=True)


async def _backup_export_async(store: KeyedStore) -> str:
    return await BackupService.for_store(store).export_all_data()


async def _backup_import_async(store: KeyedStore, text: str) -> ImportResult:
    return await BackupService.for_store(store).import_all_data(text)


@app.command("export")
def backup_export(
    ctx: typer.Context,
    output: Optional[pathlib.Path] = typer.Option(
        None, "--output", "-o", help="Write the backup here instead of stdout."
    ),
) -> None:
    """Write a full backup document."""
    text = run_with_store("backup export", ctx.obj.get("db"), _backup_export_async)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Backup written to {output}")


@app.command("import")
def backup_import(
    ctx: typer.Context,
    path: pathlib.Path = typer.Argument(..., exists=True, dir_okay=False, help="Backup file to restore."),
) -> None:
    """Restore a backup; the playlist registry is replaced by the backup's names."""
    text = path.read_text(encoding="utf-8")
    result = run_with_store("backup import", ctx.obj.get("db"), lambda s: _backup_import_async(s, text))
    if not result.success:
        typer.echo(f"Backup import failed: {result.error}")
        raise typer.Exit(code=ExitCode.USER_ERROR)
    typer.echo("Backup restored.")
