# ABOUTME: Public API for the Gong reading-notes store.
# ABOUTME: Exports the store handle, repositories, backup engine, record types, and errors.

from gong.db.backup import (
    FORMAT_VERSION,
    BackupSnapshot,
    RestoreResult,
    export_snapshot,
    import_snapshot,
    parse_snapshot,
)
from gong.db.books import BookRepository
from gong.db.connection import DEFAULT_DB_PATH, Store, ensure_schema, open_store
from gong.db.entries import EntryRepository
from gong.db.errors import (
    ConstraintError,
    ForeignKeyError,
    FormatError,
    NotFoundError,
    SchemaError,
    StoreError,
)
from gong.db.mapping import Book, Entry, NewBook, NewEntry
from gong.db.settings import SETTINGS, SettingsRepository
from gong.db.summary import MonthlySummary, summarize_month

__all__ = [
    "DEFAULT_DB_PATH",
    "FORMAT_VERSION",
    "SETTINGS",
    "BackupSnapshot",
    "Book",
    "BookRepository",
    "ConstraintError",
    "Entry",
    "EntryRepository",
    "ForeignKeyError",
    "FormatError",
    "MonthlySummary",
    "NewBook",
    "NewEntry",
    "NotFoundError",
    "RestoreResult",
    "SchemaError",
    "SettingsRepository",
    "Store",
    "StoreError",
    "ensure_schema",
    "export_snapshot",
    "import_snapshot",
    "open_store",
    "parse_snapshot",
    "summarize_month",
]
