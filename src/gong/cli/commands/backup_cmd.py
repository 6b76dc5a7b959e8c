# ABOUTME: The `gong backup` command group for snapshot export and restore.
# ABOUTME: Writes the whole library to a JSON file, or replaces it from one.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from gong.cli.options import db_option
from gong.db.backup import default_backup_name, export_snapshot, import_snapshot
from gong.db.connection import DEFAULT_DB_PATH, open_store
from gong.db.errors import StoreError

console = Console()


@click.group("backup")
def backup() -> None:
    """Export or restore a full library snapshot."""


@backup.command("export")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write (default: ./gong_backup_YYYY-MM-DD.json).",
)
@db_option
def backup_export(output: Path | None, db_path: Path | None) -> None:
    """Write every book, entry, and setting to a JSON snapshot."""
    target = output or Path(default_backup_name())
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            text = export_snapshot(store)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    console.print(f"Backup written to [bold]{escape(str(target))}[/bold].")


@backup.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@db_option
def backup_import(path: Path, yes: bool, db_path: Path | None) -> None:
    """Replace the whole library with the contents of a snapshot."""
    if not yes:
        click.confirm("This replaces all books, entries, and settings. Continue?", abort=True)

    raw = path.read_bytes()
    try:
        store = open_store(db_path or DEFAULT_DB_PATH)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    with store:
        try:
            result = import_snapshot(store, raw)
        except StoreError as exc:
            console.print(f"[red]Restore failed, library unchanged:[/red] {escape(str(exc))}")
            raise SystemExit(1) from exc

    console.print(
        f"Restored {result.books} book(s), {result.entries} entry(ies), "
        f"{result.settings} setting(s)."
    )
