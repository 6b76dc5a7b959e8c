# ABOUTME: CRUD operations for books in the Gong store.
# ABOUTME: Enforces the rating range and cascades entry removal on delete.

import logging
import sqlite3
import uuid
from collections.abc import Iterable
from typing import Any

from gong.db.connection import Store
from gong.db.errors import ConstraintError, NotFoundError, from_integrity_error
from gong.db.mapping import BOOK_FIELDS, Book, NewBook, row_to_book

logger = logging.getLogger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0


def _check_rating(rating: Any) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int | float):
        raise ConstraintError(f"Rating must be a number, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ConstraintError(f"Rating {rating} is outside [{MIN_RATING:g}, {MAX_RATING:g}]")


def _check_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConstraintError(f"Book {name} must be non-empty text")


def _validate(fields: dict[str, Any]) -> dict[str, Any]:
    """Check the given book fields and normalize an empty review to None."""
    unknown = set(fields) - set(BOOK_FIELDS)
    if unknown:
        raise ConstraintError(f"Unknown book field(s): {', '.join(sorted(unknown))}")
    if "title" in fields:
        _check_text("title", fields["title"])
    if "author" in fields:
        _check_text("author", fields["author"])
    if "rating" in fields:
        _check_rating(fields["rating"])
    if "registered_date" in fields and not isinstance(fields["registered_date"], str):
        raise ConstraintError("Book registered_date must be text")
    if "review" in fields:
        fields["review"] = fields["review"] or None
    return fields


class BookRepository:
    """Typed CRUD for the books table."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def get_all(self) -> list[Book]:
        """Return all books ordered by title, case-insensitively (ties by id)."""
        with self._store.transaction(readonly=True) as conn:
            cursor = conn.execute("SELECT * FROM books ORDER BY title COLLATE NOCASE, id")
            return [row_to_book(row) for row in cursor.fetchall()]

    def get_by_id(self, book_id: str) -> Book | None:
        """Retrieve a book by id, or None if there is no such book."""
        with self._store.transaction(readonly=True) as conn:
            row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
            return row_to_book(row) if row else None

    def create(self, book: NewBook) -> str:
        """Add a book and return its freshly generated id.

        Raises:
            ConstraintError: If the rating is outside [0, 5] or title/author are empty.
        """
        fields = _validate(
            {
                "title": book.title,
                "author": book.author,
                "rating": book.rating,
                "registered_date": book.registered_date,
                "review": book.review,
            }
        )
        book_id = str(uuid.uuid4())
        try:
            with self._store.transaction() as conn:
                self._insert(conn, Book(id=book_id, **fields))
        except sqlite3.IntegrityError as exc:
            raise from_integrity_error(exc) from exc
        logger.debug("Created book %s", book_id)
        return book_id

    def restore(self, books: Iterable[Book]) -> int:
        """Insert books with their existing ids. Used by backup restore.

        Returns:
            The number of books inserted.
        """
        count = 0
        try:
            with self._store.transaction() as conn:
                for book in books:
                    _validate(
                        {
                            "title": book.title,
                            "author": book.author,
                            "rating": book.rating,
                            "registered_date": book.registered_date,
                        }
                    )
                    self._insert(conn, book)
                    count += 1
        except sqlite3.IntegrityError as exc:
            raise from_integrity_error(exc) from exc
        return count

    @staticmethod
    def _insert(conn: sqlite3.Connection, book: Book) -> None:
        conn.execute(
            "INSERT INTO books (id, title, author, rating, registered_date, review) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                book.id,
                book.title,
                book.author,
                book.rating,
                book.registered_date,
                book.review or None,
            ),
        )

    def update(self, book_id: str, **fields: Any) -> None:
        """Update one or more fields on a book.

        Accepts keyword arguments among title, author, rating,
        registered_date and review. Only the given fields change. Calling
        with no fields is a no-op.

        Raises:
            ConstraintError: If a value breaks an invariant or a field is unknown.
            NotFoundError: If the book_id does not exist.
        """
        if not fields:
            return
        _validate(fields)

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        values = [*fields.values(), book_id]

        try:
            with self._store.transaction() as conn:
                cursor = conn.execute(f"UPDATE books SET {set_clause} WHERE id = ?", values)
                if cursor.rowcount == 0:
                    raise NotFoundError(f"Book with id {book_id} not found")
        except sqlite3.IntegrityError as exc:
            raise from_integrity_error(exc) from exc

    def delete(self, book_id: str) -> None:
        """Delete a book together with all of its entries.

        The entries go through ON DELETE CASCADE in the same statement, so
        either both disappear or neither does.

        Raises:
            NotFoundError: If the book_id does not exist.
        """
        with self._store.transaction() as conn:
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Book with id {book_id} not found")
        logger.debug("Deleted book %s", book_id)
