# ABOUTME: The `gong entry` command group for page-anchored notes.
# ABOUTME: Parses page references like "p.16" or "19-20" before anything is stored.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gong.cli.options import db_option
from gong.core.pages import PageRange, format_page_range, parse_page_range
from gong.db.connection import DEFAULT_DB_PATH, open_store
from gong.db.entries import EntryRepository
from gong.db.errors import StoreError
from gong.db.mapping import NewEntry

console = Console()


def _parse_pages_or_exit(text: str) -> PageRange:
    pages = parse_page_range(text)
    if pages is None:
        console.print(f"[red]Invalid page reference:[/red] {escape(text)}")
        raise SystemExit(1)
    return pages


@click.group("entry")
def entry() -> None:
    """Manage entries (page-anchored notes) on books."""


@entry.command("add")
@click.argument("book_id")
@click.argument("pages")
@click.argument("text")
@db_option
def entry_add(book_id: str, pages: str, text: str, db_path: Path | None) -> None:
    """Attach a note to PAGES (e.g. 16, p.16, 19-20) of a book."""
    page_range = _parse_pages_or_exit(pages)
    new_entry = NewEntry(
        book_id=book_id,
        page_start=page_range.start,
        page_end=page_range.end,
        text=text,
    )

    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            entry_id = EntryRepository(store).create(new_entry)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    label = format_page_range(page_range.start, page_range.end)
    console.print(f"Added entry at [cyan]{label}[/cyan] ({entry_id}).")


@entry.command("ls")
@click.argument("book_id")
@db_option
def entry_ls(book_id: str, db_path: Path | None) -> None:
    """List a book's entries in page order."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            entries = EntryRepository(store).get_by_book_id(book_id)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    if not entries:
        console.print("[yellow]No entries for this book.[/yellow]")
        return

    table = Table()
    table.add_column("Pages", style="cyan", no_wrap=True)
    table.add_column("Text")
    table.add_column("ID", style="dim", overflow="fold")

    for item in entries:
        table.add_row(
            format_page_range(item.page_start, item.page_end),
            escape(item.text),
            item.id,
        )

    console.print(table)
    console.print(f"\n[dim]{len(entries)} entry(ies)[/dim]")


@entry.command("edit")
@click.argument("entry_id")
@click.option("--pages", default=None, help="New page reference.")
@click.option("--text", default=None, help="New note text.")
@db_option
def entry_edit(
    entry_id: str, pages: str | None, text: str | None, db_path: Path | None
) -> None:
    """Change an entry's pages and/or text."""
    fields: dict[str, object] = {}
    if pages is not None:
        page_range = _parse_pages_or_exit(pages)
        fields["page_start"] = page_range.start
        fields["page_end"] = page_range.end
    if text is not None:
        fields["text"] = text
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow]")
        return

    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            EntryRepository(store).update(entry_id, **fields)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"Updated entry {entry_id}.")


@entry.command("rm")
@click.argument("entry_id")
@db_option
def entry_rm(entry_id: str, db_path: Path | None) -> None:
    """Delete a single entry."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            EntryRepository(store).delete(entry_id)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"Deleted entry {entry_id}.")
