# ABOUTME: Exception hierarchy for the Gong reading-notes store.
# ABOUTME: Every failure surfaced by the db layer derives from StoreError.


class StoreError(Exception):
    """Base class for all errors raised by the store."""


class SchemaError(StoreError):
    """Raised when the schema cannot be created or migrated. Fatal at startup."""


class ConstraintError(StoreError):
    """Raised when a write would violate a store invariant (rating, page range, ...)."""


class ForeignKeyError(StoreError):
    """Raised when an entry references a book that does not exist."""


class FormatError(StoreError, ValueError):
    """Raised when a backup snapshot is malformed. Checked before any mutation."""


class NotFoundError(StoreError, LookupError):
    """Raised when an update or delete targets an id that does not exist."""


def from_integrity_error(exc: Exception) -> StoreError:
    """Map a sqlite3.IntegrityError onto the store's error taxonomy."""
    message = str(exc)
    if "FOREIGN KEY constraint failed" in message:
        return ForeignKeyError(message)
    return ConstraintError(message)
