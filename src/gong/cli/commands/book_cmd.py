# ABOUTME: The `gong book` command group for managing tracked books.
# ABOUTME: Provides add, ls, show, edit, and rm subcommands over the book repository.

from datetime import date
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gong.cli.options import db_option
from gong.core.pages import format_page_range
from gong.db.books import BookRepository
from gong.db.connection import DEFAULT_DB_PATH, open_store
from gong.db.entries import EntryRepository
from gong.db.errors import StoreError
from gong.db.mapping import NewBook

console = Console()


@click.group("book")
def book() -> None:
    """Manage tracked books."""


@book.command("add")
@click.argument("title")
@click.argument("author")
@click.option("--rating", type=float, required=True, help="Rating from 0 to 5.")
@click.option(
    "--date",
    "registered_date",
    default=None,
    help="Date you started reading (ISO-8601, default: today).",
)
@click.option("--review", default=None, help="Short review.")
@db_option
def book_add(
    title: str,
    author: str,
    rating: float,
    registered_date: str | None,
    review: str | None,
    db_path: Path | None,
) -> None:
    """Register a new book."""
    new_book = NewBook(
        title=title,
        author=author,
        rating=rating,
        registered_date=registered_date or date.today().isoformat(),
        review=review,
    )
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            book_id = BookRepository(store).create(new_book)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"Added [bold]{escape(title)}[/bold] ({book_id}).")


@book.command("ls")
@db_option
def book_ls(db_path: Path | None) -> None:
    """List all books, alphabetically by title."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            books = BookRepository(store).get_all()
            counts = EntryRepository(store).count_by_book()
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    if not books:
        console.print("[yellow]No books in the library.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Rating", justify="right")
    table.add_column("Started")
    table.add_column("Entries", justify="right")

    for record in books:
        table.add_row(
            record.id,
            escape(record.title),
            escape(record.author),
            f"{record.rating:.1f}",
            escape(record.registered_date),
            str(counts.get(record.id, 0)),
        )

    console.print(table)
    console.print(f"\n[dim]{len(books)} book(s)[/dim]")


@book.command("show")
@click.argument("book_id")
@db_option
def book_show(book_id: str, db_path: Path | None) -> None:
    """Show a book and its entries."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            record = BookRepository(store).get_by_id(book_id)
            entries = EntryRepository(store).get_by_book_id(book_id) if record else []
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    if record is None:
        console.print(f"[red]Book {escape(book_id)} not found.[/red]")
        raise SystemExit(1)

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=10)
    table.add_column("Value")

    table.add_row("ID", record.id)
    table.add_row("Title", escape(record.title))
    table.add_row("Author", escape(record.author))
    table.add_row("Rating", f"{record.rating:.1f}")
    table.add_row("Started", escape(record.registered_date))
    if record.review:
        table.add_row("Review", escape(record.review))
    console.print(table)

    if not entries:
        console.print("\n[dim]No entries yet.[/dim]")
        return

    console.print()
    for item in entries:
        pages = format_page_range(item.page_start, item.page_end)
        console.print(f"[cyan]{pages}[/cyan]  {escape(item.text)}")


@book.command("edit")
@click.argument("book_id")
@click.option("--title", default=None, help="New title.")
@click.option("--author", default=None, help="New author.")
@click.option("--rating", type=float, default=None, help="New rating from 0 to 5.")
@click.option("--date", "registered_date", default=None, help="New start date.")
@click.option("--review", default=None, help="New review (empty string clears it).")
@db_option
def book_edit(
    book_id: str,
    title: str | None,
    author: str | None,
    rating: float | None,
    registered_date: str | None,
    review: str | None,
    db_path: Path | None,
) -> None:
    """Change some fields of a book, leaving the rest untouched."""
    candidates = {
        "title": title,
        "author": author,
        "rating": rating,
        "registered_date": registered_date,
        "review": review,
    }
    fields = {key: value for key, value in candidates.items() if value is not None}
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow]")
        return

    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            BookRepository(store).update(book_id, **fields)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"Updated book {book_id}.")


@book.command("rm")
@click.argument("book_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@db_option
def book_rm(book_id: str, yes: bool, db_path: Path | None) -> None:
    """Delete a book and all of its entries."""
    try:
        with open_store(db_path or DEFAULT_DB_PATH) as store:
            books = BookRepository(store)
            record = books.get_by_id(book_id)
            if record is None:
                console.print(f"[red]Book {escape(book_id)} not found.[/red]")
                raise SystemExit(1)

            if not yes:
                click.confirm(f"Delete '{record.title}' and all of its entries?", abort=True)

            books.delete(book_id)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"Deleted [bold]{escape(record.title)}[/bold].")
