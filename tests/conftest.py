# ABOUTME: Shared pytest fixtures for Gong tests.
# ABOUTME: Provides a temporary store and a small library of sample books and entries.

from collections.abc import Iterator
from pathlib import Path

import pytest

from gong.db.books import BookRepository
from gong.db.connection import Store, open_store
from gong.db.entries import EntryRepository
from gong.db.mapping import NewBook, NewEntry


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "library.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[Store]:
    """Provide an open store backed by a temporary database file."""
    handle = open_store(db_path)
    yield handle
    handle.close()


@pytest.fixture
def books(store: Store) -> BookRepository:
    return BookRepository(store)


@pytest.fixture
def entries(store: Store) -> EntryRepository:
    return EntryRepository(store)


@pytest.fixture
def demian() -> NewBook:
    """A fully-populated NewBook for testing."""
    return NewBook(
        title="Demian",
        author="Hermann Hesse",
        rating=4.5,
        registered_date="2024-01-01",
        review="A coming-of-age classic.",
    )


@pytest.fixture
def seeded(store: Store) -> dict[str, str]:
    """Populate the store with three books and a handful of entries.

    Returns a mapping of short names to book ids.
    """
    book_repo = BookRepository(store)
    entry_repo = EntryRepository(store)

    ids = {
        "demian": book_repo.create(
            NewBook("Demian", "Hermann Hesse", 4.5, "2024-01-01", "A coming-of-age classic.")
        ),
        "prince": book_repo.create(
            NewBook("The Little Prince", "Antoine de Saint-Exupéry", 4.8, "2024-01-15")
        ),
        "1984": book_repo.create(NewBook("1984", "George Orwell", 4.3, "2024-02-01")),
    }

    entry_repo.create(NewEntry(ids["demian"], 16, 16, "The bird fights its way out of the egg."))
    entry_repo.create(NewEntry(ids["demian"], 19, 20, "Leave no trace on the one you love."))
    entry_repo.create(NewEntry(ids["demian"], 16, 16, "A second thought on the same page."))
    entry_repo.create(NewEntry(ids["prince"], 1, 1, "Grown-ups are strange."))
    entry_repo.create(NewEntry(ids["prince"], 27, 27, "What is essential is invisible to the eye."))
    return ids
