# ABOUTME: The `gong summary` command for a month's reading overview.
# ABOUTME: Prints a table of books started that month, or a shareable text digest.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gong.cli.options import db_option
from gong.db.connection import DEFAULT_DB_PATH, open_store
from gong.db.errors import StoreError
from gong.db.summary import render_summary_text, summarize_month

console = Console()


@click.command("summary")
@click.argument("year", type=click.IntRange(1, 9999))
@click.argument("month", type=click.IntRange(1, 12))
@click.option("--text", "as_text", is_flag=True, help="Print a plain-text digest for sharing.")
@db_option
def summary(year: int, month: int, as_text: bool, db_path: Path | None) -> None:
    """Summarize the books started in YEAR/MONTH."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            result = summarize_month(store, year, month)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    if as_text:
        click.echo(render_summary_text(result))
        return

    if not result.books:
        console.print(f"[yellow]No books started in {result.label}.[/yellow]")
        return

    table = Table(title=result.label)
    table.add_column("Title", style="bold")
    table.add_column("Rating", justify="right")
    table.add_column("Entries", justify="right")
    for item in result.books:
        table.add_row(escape(item.book.title), f"{item.book.rating:.1f}", str(item.entry_count))

    console.print(table)
    console.print(
        f"\n[dim]{result.book_count} book(s) · {result.entry_count} entry(ies) "
        f"· average rating {result.average_rating:.1f}[/dim]"
    )
