# ABOUTME: SQLite store handle for the Gong reading-notes database.
# ABOUTME: Opens or creates the database, applies schema and migrations, and scopes transactions.

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from gong.db.errors import SchemaError, StoreError
from gong.db.schema import DEFAULT_SETTINGS, MIGRATIONS, SCHEMA_V1

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".gong" / "library.db"

MEMORY = ":memory:"


class Store:
    """Owns the single sqlite3 connection and the transaction boundary.

    The connection runs in autocommit mode; every unit of work goes through
    transaction(), which issues BEGIN (IMMEDIATE unless read-only) /
    COMMIT / ROLLBACK itself. Transactions are serialized by a re-entrant
    lock, and a nested transaction() call joins the one already open on this store.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn: sqlite3.Connection | None = conn
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def closed(self) -> bool:
        return self._conn is None

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Store is closed")
        return self._conn

    @contextmanager
    def transaction(self, readonly: bool = False) -> Iterator[sqlite3.Connection]:
        """Run a block of statements as one all-or-nothing unit.

        Commits when the block exits normally and rolls back when it raises.
        The exception always propagates to the caller.

        Args:
            readonly: Open with a deferred BEGIN, which takes no write lock
                until the block first writes. Other processes can keep
                writing while a read-only unit runs. Ignored when nested.

        Yields:
            The underlying connection, for executing statements.
        """
        with self._lock:
            conn = self._connection()
            if self._depth:
                self._depth += 1
                try:
                    yield conn
                finally:
                    self._depth -= 1
                return

            conn.execute("BEGIN" if readonly else "BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                # SQLite may already have rolled back on its own (e.g. SQLITE_FULL).
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                self._depth = 0

    def close(self) -> None:
        """Close the underlying connection. Safe to call more than once."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,)
    )
    return cursor.fetchone() is not None


def _column_names(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def _apply_schema(conn: sqlite3.Connection) -> None:
    """Execute the DDL to create all tables and indexes."""
    for statement in SCHEMA_V1:
        conn.execute(statement)


def _adopt_legacy(conn: sqlite3.Connection) -> None:
    """Record a baseline version for a database created before versioning.

    Such databases already hold books/entries/settings. Older files stored
    the reading start date as ``startedDate``; that column is renamed.
    The baseline is 2 when the review column is already present, else 1.
    """
    columns = _column_names(conn, "books")
    if "startedDate" in columns and "registered_date" not in columns:
        conn.execute("ALTER TABLE books RENAME COLUMN startedDate TO registered_date")

    conn.execute(
        "CREATE TABLE schema_version ("
        " version INTEGER NOT NULL,"
        " applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')))"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_entries_book "
        "ON entries(book_id, page_start, page_end, created_at)"
    )
    baseline = 2 if "review" in columns else 1
    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (baseline,))
    logger.info("Adopted unversioned database at schema version %d", baseline)


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the current schema version from the database."""
    cursor = conn.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
    row = cursor.fetchone()
    return row[0] if row else 0


def _apply_migrations(conn: sqlite3.Connection) -> None:
    """Apply pending schema migrations sequentially.

    Reads the current schema version and applies any migrations with a higher
    version number, recording each one. No-op if the database is already at
    the latest version.
    """
    current = get_schema_version(conn)
    for version, statements in MIGRATIONS:
        if version > current:
            for statement in statements:
                conn.execute(statement)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            logger.info("Applied schema migration v%d", version)


def _seed_settings(conn: sqlite3.Connection) -> None:
    conn.executemany(
        "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
        DEFAULT_SETTINGS.items(),
    )


def ensure_schema(store: Store) -> None:
    """Create or migrate the schema and seed default settings.

    Idempotent. Runs as one transaction, so a failing statement leaves the
    database as it was.

    Raises:
        SchemaError: If any statement fails. The store is unusable.
    """
    try:
        with store.transaction() as conn:
            if not _table_exists(conn, "schema_version"):
                if _table_exists(conn, "books"):
                    _adopt_legacy(conn)
                else:
                    _apply_schema(conn)
                    logger.debug("Created schema v1")
            _apply_migrations(conn)
            _seed_settings(conn)
    except sqlite3.Error as exc:
        raise SchemaError(f"Could not initialize schema: {exc}") from exc


def open_store(path: Path | str | None = None) -> Store:
    """Open or create the Gong database.

    Creates the database file and parent directories if they don't exist.
    Applies the schema on first creation and any pending migrations after.
    Enables foreign keys (needed for cascading entry deletes), WAL journal
    mode and sqlite3.Row factory for dict-like column access.

    Args:
        path: Path to the database file, or ":memory:". Defaults to
            ~/.gong/library.db.

    Returns:
        A ready-to-use Store.

    Raises:
        SchemaError: If the database cannot be opened or initialized.
    """
    if path == MEMORY:
        target = MEMORY
    else:
        db_path = Path(path) if path is not None else DEFAULT_DB_PATH
        db_path.parent.mkdir(parents=True, exist_ok=True)
        target = str(db_path)

    try:
        conn = sqlite3.connect(target, isolation_level=None, check_same_thread=False)
    except sqlite3.Error as exc:
        raise SchemaError(f"Could not open database {target}: {exc}") from exc

    store = Store(conn)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        if target != MEMORY:
            conn.execute("PRAGMA journal_mode=WAL")
        ensure_schema(store)
    except sqlite3.Error as exc:
        store.close()
        raise SchemaError(f"Could not open database {target}: {exc}") from exc
    except SchemaError:
        store.close()
        raise
    return store
