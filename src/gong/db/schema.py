# ABOUTME: SQL DDL statements for the Gong store schema.
# ABOUTME: Defines the initial tables, the ordered migration list, and default settings.

# Statements are kept as tuples rather than scripts so they can run one by one
# inside a single explicit transaction.
SCHEMA_V1: tuple[str, ...] = (
    """
    CREATE TABLE books (
        id              TEXT PRIMARY KEY,
        title           TEXT NOT NULL CHECK (length(trim(title)) > 0),
        author          TEXT NOT NULL CHECK (length(trim(author)) > 0),
        rating          REAL NOT NULL CHECK (rating >= 0.0 AND rating <= 5.0),
        registered_date TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE entries (
        id          TEXT PRIMARY KEY,
        book_id     TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
        page_start  INTEGER NOT NULL CHECK (page_start >= 1),
        page_end    INTEGER NOT NULL,
        text        TEXT NOT NULL CHECK (length(trim(text)) > 0),
        created_at  INTEGER NOT NULL,
        CHECK (page_end >= page_start)
    )
    """,
    # Backs the default (page_start, page_end, created_at) ordering per book.
    """
    CREATE INDEX idx_entries_book
        ON entries(book_id, page_start, page_end, created_at)
    """,
    """
    CREATE TABLE settings (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE schema_version (
        version    INTEGER NOT NULL,
        applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
    )
    """,
    "INSERT INTO schema_version (version) VALUES (1)",
)

# V2: optional short review per book.
MIGRATION_V2: tuple[str, ...] = (
    "ALTER TABLE books ADD COLUMN review TEXT",
)

# Ordered (version, statements) pairs. Append only; never edit a shipped entry.
MIGRATIONS: list[tuple[int, tuple[str, ...]]] = [
    (2, MIGRATION_V2),
]

LATEST_VERSION = MIGRATIONS[-1][0] if MIGRATIONS else 1

# Largest value an INTEGER column can hold (signed 64-bit).
SQLITE_MAX_INTEGER = 2**63 - 1

# Seeded with INSERT OR IGNORE, so existing values are never overwritten.
DEFAULT_SETTINGS: dict[str, str] = {
    "viewMode": "page",
    "fontSize": "medium",
    "lineHeight": "normal",
    "margin": "normal",
    "font": "sans",
    "einkMode": "false",
    "haptic": "false",
    "sound": "false",
    "scrollAccel": "normal",
}
