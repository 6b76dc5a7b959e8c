# ABOUTME: The `gong settings` command group for display and feedback preferences.
# ABOUTME: Shows all nine settings and sets one at a time with domain checking.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gong.cli.options import db_option
from gong.db.connection import DEFAULT_DB_PATH, open_store
from gong.db.errors import StoreError
from gong.db.settings import SETTINGS, SettingsRepository, get_spec

console = Console()


def _display(value: bool | str) -> str:
    if isinstance(value, bool):
        return "[green]on[/green]" if value else "[dim]off[/dim]"
    return value


@click.group("settings")
def settings() -> None:
    """View or change preferences."""


@settings.command("show")
@db_option
def settings_show(db_path: Path | None) -> None:
    """Show every setting with its current value and allowed values."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            values = SettingsRepository(store).get_all()
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    table = Table()
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_column("Allowed", style="dim")

    for key, spec in SETTINGS.items():
        allowed = "true, false" if spec.is_bool else ", ".join(spec.choices or ())
        table.add_row(key, _display(values[key]), allowed)

    console.print(table)


@settings.command("set")
@click.argument("key")
@click.argument("value")
@db_option
def settings_set(key: str, value: str, db_path: Path | None) -> None:
    """Set KEY to VALUE (booleans accept true/false, on/off, yes/no)."""
    try:
        spec = get_spec(key)
        typed = spec.parse(value)
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            SettingsRepository(store).update(key, typed)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"[bold]{key}[/bold] = {_display(typed)}")
