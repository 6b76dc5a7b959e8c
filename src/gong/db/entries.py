# ABOUTME: CRUD operations for page-anchored entries in the Gong store.
# ABOUTME: Enforces page-range validity, book references, and creation-order timestamps.

import logging
import sqlite3
import time
import uuid
from collections.abc import Iterable
from typing import Any

from gong.core.pages import is_valid_range
from gong.db.connection import Store
from gong.db.errors import (
    ConstraintError,
    ForeignKeyError,
    NotFoundError,
    from_integrity_error,
)
from gong.db.mapping import ENTRY_FIELDS, Entry, NewEntry, row_to_entry
from gong.db.schema import SQLITE_MAX_INTEGER

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _check_pages(start: Any, end: Any) -> None:
    for value in (start, end):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConstraintError(f"Page numbers must be integers, got {value!r}")
    if not is_valid_range(start, end):
        raise ConstraintError(f"Invalid page range {start}-{end}")
    if end > SQLITE_MAX_INTEGER:
        raise ConstraintError(f"Page number {end} is too large")


def _check_created_at(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConstraintError(f"created_at must be an integer, got {value!r}")
    if not -SQLITE_MAX_INTEGER - 1 <= value <= SQLITE_MAX_INTEGER:
        raise ConstraintError(f"created_at {value} is out of range")


def _check_text(value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConstraintError("Entry text must be non-empty")


class EntryRepository:
    """Typed CRUD for the entries table."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def get_by_book_id(self, book_id: str) -> list[Entry]:
        """Return a book's entries ordered by (page_start, page_end, created_at).

        Same-page entries end up adjacent, oldest first.
        """
        with self._store.transaction(readonly=True) as conn:
            cursor = conn.execute(
                "SELECT * FROM entries WHERE book_id = ? "
                "ORDER BY page_start ASC, page_end ASC, created_at ASC",
                (book_id,),
            )
            return [row_to_entry(row) for row in cursor.fetchall()]

    def get_by_id(self, entry_id: str) -> Entry | None:
        """Retrieve an entry by id, or None if there is no such entry."""
        with self._store.transaction(readonly=True) as conn:
            row = conn.execute("SELECT * FROM entries WHERE id = ?", (entry_id,)).fetchone()
            return row_to_entry(row) if row else None

    def get_all(self) -> list[Entry]:
        """Return every entry in the store, grouped by book in display order."""
        with self._store.transaction(readonly=True) as conn:
            cursor = conn.execute(
                "SELECT * FROM entries ORDER BY book_id, page_start, page_end, created_at"
            )
            return [row_to_entry(row) for row in cursor.fetchall()]

    def count_by_book(self) -> dict[str, int]:
        """Return the number of entries per book id (books without entries are absent)."""
        with self._store.transaction(readonly=True) as conn:
            cursor = conn.execute("SELECT book_id, COUNT(*) FROM entries GROUP BY book_id")
            return {row[0]: row[1] for row in cursor.fetchall()}

    def create(self, entry: NewEntry) -> str:
        """Add an entry to a book and return its generated id.

        created_at is taken from the clock but never goes backwards or
        repeats within the store, so creation order is always recoverable.

        Raises:
            ConstraintError: If the page range is invalid or the text is empty.
            ForeignKeyError: If book_id does not reference an existing book.
        """
        _check_pages(entry.page_start, entry.page_end)
        _check_text(entry.text)
        entry_id = str(uuid.uuid4())

        try:
            with self._store.transaction() as conn:
                book = conn.execute("SELECT 1 FROM books WHERE id = ?", (entry.book_id,))
                if book.fetchone() is None:
                    raise ForeignKeyError(f"Book with id {entry.book_id} does not exist")
                latest = conn.execute("SELECT MAX(created_at) FROM entries").fetchone()[0]
                created_at = _now_ms()
                if latest is not None and created_at <= latest:
                    created_at = latest + 1
                _check_created_at(created_at)
                self._insert(
                    conn,
                    Entry(
                        id=entry_id,
                        book_id=entry.book_id,
                        page_start=entry.page_start,
                        page_end=entry.page_end,
                        text=entry.text,
                        created_at=created_at,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise from_integrity_error(exc) from exc

        logger.debug("Created entry %s for book %s", entry_id, entry.book_id)
        return entry_id

    def restore(self, entries: Iterable[Entry]) -> int:
        """Insert entries with their existing ids and timestamps. Used by backup restore.

        Returns:
            The number of entries inserted.
        """
        count = 0
        try:
            with self._store.transaction() as conn:
                for entry in entries:
                    _check_pages(entry.page_start, entry.page_end)
                    _check_text(entry.text)
                    _check_created_at(entry.created_at)
                    self._insert(conn, entry)
                    count += 1
        except sqlite3.IntegrityError as exc:
            raise from_integrity_error(exc) from exc
        return count

    @staticmethod
    def _insert(conn: sqlite3.Connection, entry: Entry) -> None:
        conn.execute(
            "INSERT INTO entries (id, book_id, page_start, page_end, text, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.id,
                entry.book_id,
                entry.page_start,
                entry.page_end,
                entry.text,
                entry.created_at,
            ),
        )

    def update(self, entry_id: str, **fields: Any) -> None:
        """Update the page range and/or text of an entry.

        Accepts keyword arguments among page_start, page_end and text. A
        partial page range is merged with the stored one before it is
        checked. Calling with no fields is a no-op.

        Raises:
            ConstraintError: If the resulting entry breaks an invariant.
            NotFoundError: If the entry_id does not exist.
        """
        if not fields:
            return
        unknown = set(fields) - set(ENTRY_FIELDS)
        if unknown:
            raise ConstraintError(f"Unknown entry field(s): {', '.join(sorted(unknown))}")
        if "text" in fields:
            _check_text(fields["text"])

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        values = [*fields.values(), entry_id]

        try:
            with self._store.transaction() as conn:
                row = conn.execute(
                    "SELECT page_start, page_end FROM entries WHERE id = ?", (entry_id,)
                ).fetchone()
                if row is None:
                    raise NotFoundError(f"Entry with id {entry_id} not found")
                _check_pages(
                    fields.get("page_start", row["page_start"]),
                    fields.get("page_end", row["page_end"]),
                )
                conn.execute(f"UPDATE entries SET {set_clause} WHERE id = ?", values)
        except sqlite3.IntegrityError as exc:
            raise from_integrity_error(exc) from exc

    def delete(self, entry_id: str) -> None:
        """Delete a single entry.

        Raises:
            NotFoundError: If the entry_id does not exist.
        """
        with self._store.transaction() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Entry with id {entry_id} not found")
