# ABOUTME: Record types for books and entries and their conversion to and from rows.
# ABOUTME: Also maps records to the snapshot field names used by backups (registeredDate, ...).

from dataclasses import dataclass
from typing import Any

# Columns a partial update may touch.
BOOK_FIELDS = ("title", "author", "rating", "registered_date", "review")
ENTRY_FIELDS = ("page_start", "page_end", "text")


@dataclass(frozen=True)
class NewBook:
    """A book as supplied by the caller, before the store assigns an id."""

    title: str
    author: str
    rating: float
    registered_date: str
    review: str | None = None


@dataclass(frozen=True)
class Book:
    """A stored book."""

    id: str
    title: str
    author: str
    rating: float
    registered_date: str
    review: str | None = None


@dataclass(frozen=True)
class NewEntry:
    """A page-anchored note as supplied by the caller."""

    book_id: str
    page_start: int
    page_end: int
    text: str


@dataclass(frozen=True)
class Entry:
    """A stored page-anchored note. created_at is epoch milliseconds."""

    id: str
    book_id: str
    page_start: int
    page_end: int
    text: str
    created_at: int


def row_to_book(row: Any) -> Book:
    """Convert a books row (dict-like) to a Book."""
    return Book(
        id=row["id"],
        title=row["title"],
        author=row["author"],
        rating=float(row["rating"]),
        registered_date=row["registered_date"],
        review=row["review"],
    )


def row_to_entry(row: Any) -> Entry:
    """Convert an entries row (dict-like) to an Entry."""
    return Entry(
        id=row["id"],
        book_id=row["book_id"],
        page_start=row["page_start"],
        page_end=row["page_end"],
        text=row["text"],
        created_at=row["created_at"],
    )


def book_to_snapshot(book: Book) -> dict[str, Any]:
    """Serialize a Book using the snapshot field names."""
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "rating": book.rating,
        "registeredDate": book.registered_date,
        "review": book.review,
    }


def snapshot_to_book(data: dict[str, Any]) -> Book:
    """Build a Book from an already-validated snapshot record."""
    return Book(
        id=data["id"],
        title=data["title"],
        author=data["author"],
        rating=float(data["rating"]),
        registered_date=data["registeredDate"],
        review=data.get("review") or None,
    )


def entry_to_snapshot(entry: Entry) -> dict[str, Any]:
    """Serialize an Entry using the snapshot field names."""
    return {
        "id": entry.id,
        "book_id": entry.book_id,
        "page_start": entry.page_start,
        "page_end": entry.page_end,
        "text": entry.text,
        "created_at": entry.created_at,
    }


def snapshot_to_entry(data: dict[str, Any]) -> Entry:
    """Build an Entry from an already-validated snapshot record."""
    return Entry(
        id=data["id"],
        book_id=data["book_id"],
        page_start=data["page_start"],
        page_end=data["page_end"],
        text=data["text"],
        created_at=data["created_at"],
    )
