# ABOUTME: Full-library snapshot export and all-or-nothing restore for the Gong store.
# ABOUTME: Snapshots are JSON documents holding every book, entry, and setting row.

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from gong.db.books import BookRepository
from gong.db.connection import Store
from gong.db.entries import EntryRepository
from gong.db.errors import FormatError
from gong.db.mapping import (
    Book,
    Entry,
    book_to_snapshot,
    entry_to_snapshot,
    snapshot_to_book,
    snapshot_to_entry,
)
from gong.db.schema import SQLITE_MAX_INTEGER
from gong.db.settings import SETTINGS, SettingsRepository

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0.0"
SUPPORTED_MAJOR = "1"

# Required record fields and the JSON types each may hold.
_BOOK_SCHEMA: dict[str, tuple[type, ...]] = {
    "id": (str,),
    "title": (str,),
    "author": (str,),
    "rating": (int, float),
    "registeredDate": (str,),
}
_ENTRY_SCHEMA: dict[str, tuple[type, ...]] = {
    "id": (str,),
    "book_id": (str,),
    "page_start": (int,),
    "page_end": (int,),
    "text": (str,),
    "created_at": (int,),
}


@dataclass
class BackupSnapshot:
    """A consistent point-in-time copy of the whole store."""

    version: str
    timestamp: int
    books: list[Book] = field(default_factory=list)
    entries: list[Entry] = field(default_factory=list)
    settings: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "books": [book_to_snapshot(book) for book in self.books],
            "entries": [entry_to_snapshot(entry) for entry in self.entries],
            "settings": [{"key": key, "value": value} for key, value in self.settings],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


@dataclass
class RestoreResult:
    """Summary of a completed restore."""

    books: int = 0
    entries: int = 0
    settings: int = 0


def default_backup_name(today: date | None = None) -> str:
    """File name for a backup taken on the given day: gong_backup_YYYY-MM-DD.json."""
    day = today or date.today()
    return f"gong_backup_{day.isoformat()}.json"


def take_snapshot(store: Store) -> BackupSnapshot:
    """Read every row of books, entries, and settings within one transaction.

    Setting rows with unrecognized keys are left out.
    """
    with store.transaction(readonly=True):
        settings = SettingsRepository(store).raw_items()
        return BackupSnapshot(
            version=FORMAT_VERSION,
            timestamp=time.time_ns() // 1_000_000,
            books=BookRepository(store).get_all(),
            entries=EntryRepository(store).get_all(),
            settings=[(key, value) for key, value in settings if key in SETTINGS],
        )


def export_snapshot(store: Store) -> str:
    """Serialize the whole store to snapshot JSON text.

    Where the text goes (a file, a share target) is up to the caller.
    """
    snapshot = take_snapshot(store)
    logger.info(
        "Exported snapshot: %d book(s), %d entry(ies), %d setting(s)",
        len(snapshot.books),
        len(snapshot.entries),
        len(snapshot.settings),
    )
    return snapshot.to_json()


def _is_type(value: Any, types: tuple[type, ...]) -> bool:
    # bool is an int subclass but never a valid page, rating, or timestamp.
    return isinstance(value, types) and not isinstance(value, bool)


def _fits_integer(value: int) -> bool:
    return -SQLITE_MAX_INTEGER - 1 <= value <= SQLITE_MAX_INTEGER


def _check_records(
    name: str, records: Any, schema: dict[str, tuple[type, ...]]
) -> list[dict[str, Any]]:
    if not isinstance(records, list):
        raise FormatError(f"'{name}' must be a list")
    seen: set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise FormatError(f"{name}[{index}] must be an object")
        for key, types in schema.items():
            if key not in record:
                raise FormatError(f"{name}[{index}] is missing '{key}'")
            if not _is_type(record[key], types):
                raise FormatError(f"{name}[{index}].{key} has the wrong type")
            if types == (int,) and not _fits_integer(record[key]):
                raise FormatError(f"{name}[{index}].{key} is out of range")
        if record["id"] in seen:
            raise FormatError(f"{name}[{index}] repeats id {record['id']!r}")
        seen.add(record["id"])
    return records


def _check_settings(settings: Any) -> list[tuple[str, str]]:
    if settings is None:
        return []
    if not isinstance(settings, list):
        raise FormatError("'settings' must be a list")
    items = []
    for index, item in enumerate(settings):
        if not isinstance(item, dict) or not {"key", "value"} <= item.keys():
            raise FormatError(f"settings[{index}] must be an object with key and value")
        key, value = item["key"], item["value"]
        if not isinstance(key, str) or not isinstance(value, str):
            raise FormatError(f"settings[{index}] key and value must be strings")
        spec = SETTINGS.get(key)
        if spec is None:
            raise FormatError(f"settings[{index}] has unknown key {key!r}")
        try:
            spec.decode(value)
        except ValueError as exc:
            raise FormatError(f"settings[{index}]: {exc}") from exc
        items.append((key, value))
    return items


def parse_snapshot(raw: str | bytes) -> BackupSnapshot:
    """Decode and validate snapshot text without touching the store.

    Checks the JSON shape, the format version, every record's fields and
    types, and that every entry belongs to a book in the same snapshot.

    Raises:
        FormatError: If anything about the document is malformed.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FormatError(f"Backup is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise FormatError("Backup must be a JSON object")
    for required in ("version", "books", "entries"):
        if required not in data:
            raise FormatError(f"Backup is missing '{required}'")

    version = data["version"]
    if not isinstance(version, str) or not version:
        raise FormatError("'version' must be a non-empty string")
    if version.split(".")[0] != SUPPORTED_MAJOR:
        raise FormatError(f"Unsupported backup version {version}")

    timestamp = data.get("timestamp", 0)
    if not _is_type(timestamp, (int,)):
        raise FormatError("'timestamp' must be an integer")

    books = _check_records("books", data["books"], _BOOK_SCHEMA)
    entries = _check_records("entries", data["entries"], _ENTRY_SCHEMA)
    for record in books:
        review = record.get("review")
        if review is not None and not isinstance(review, str):
            raise FormatError(f"Book {record['id']!r} review must be a string or null")

    book_ids = {record["id"] for record in books}
    for record in entries:
        if record["book_id"] not in book_ids:
            raise FormatError(
                f"Entry {record['id']!r} references book {record['book_id']!r}, "
                "which is not in the backup"
            )

    return BackupSnapshot(
        version=version,
        timestamp=timestamp,
        books=[snapshot_to_book(record) for record in books],
        entries=[snapshot_to_entry(record) for record in entries],
        settings=_check_settings(data.get("settings")),
    )


def import_snapshot(store: Store, raw: str | bytes) -> RestoreResult:
    """Replace the whole store with the contents of a snapshot.

    The snapshot is fully validated first. The wipe and re-insert then run
    in a single transaction: entries are cleared before books, and any
    failing insert rolls everything back so the previous data survives.

    Raises:
        FormatError: If the snapshot is malformed. Nothing was changed.
        ConstraintError: If a record breaks a store invariant. Rolled back.
        ForeignKeyError: If an entry cannot be attached to its book. Rolled back.
    """
    snapshot = parse_snapshot(raw)

    with store.transaction() as conn:
        conn.execute("DELETE FROM entries")
        conn.execute("DELETE FROM books")
        conn.execute("DELETE FROM settings")

        result = RestoreResult(
            books=BookRepository(store).restore(snapshot.books),
            entries=EntryRepository(store).restore(snapshot.entries),
            settings=SettingsRepository(store).restore(snapshot.settings),
        )

    logger.info(
        "Restored snapshot v%s: %d book(s), %d entry(ies), %d setting(s)",
        snapshot.version,
        result.books,
        result.entries,
        result.settings,
    )
    return result
