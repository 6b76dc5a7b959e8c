# ABOUTME: Display and feedback preferences stored as a fixed set of key/value rows.
# ABOUTME: Values are typed (bool or enum tag) and encoded to text only at the storage boundary.

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from gong.db.connection import Store
from gong.db.errors import ConstraintError
from gong.db.schema import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

SettingValue = bool | str

_TRUE = "true"
_FALSE = "false"


@dataclass(frozen=True)
class SettingSpec:
    """Domain of one setting: a boolean, or a closed set of tags.

    ``choices`` is None for boolean settings.
    """

    key: str
    choices: tuple[str, ...] | None = None

    @property
    def is_bool(self) -> bool:
        return self.choices is None

    @property
    def default(self) -> SettingValue:
        return self.decode(DEFAULT_SETTINGS[self.key])

    def encode(self, value: SettingValue) -> str:
        """Convert a typed value to its stored text.

        Raises:
            ConstraintError: If the value is outside this setting's domain.
        """
        if self.is_bool:
            if not isinstance(value, bool):
                raise ConstraintError(f"Setting {self.key} takes true/false, got {value!r}")
            return _TRUE if value else _FALSE
        if isinstance(value, bool) or value not in self.choices:
            choices = ", ".join(self.choices)
            raise ConstraintError(f"Setting {self.key} takes one of {choices}, got {value!r}")
        return value

    def decode(self, raw: str) -> SettingValue:
        """Convert stored text back to a typed value.

        Raises:
            ValueError: If the text is not a valid encoding for this setting.
        """
        if self.is_bool:
            if raw == _TRUE:
                return True
            if raw == _FALSE:
                return False
        elif raw in self.choices:
            return raw
        raise ValueError(f"Stored value {raw!r} is not valid for setting {self.key}")

    def parse(self, text: str) -> SettingValue:
        """Interpret user-typed text (e.g. from the command line) as a value."""
        if self.is_bool:
            lowered = text.strip().lower()
            if lowered in ("true", "yes", "on", "1"):
                return True
            if lowered in ("false", "no", "off", "0"):
                return False
            raise ConstraintError(f"Setting {self.key} takes true/false, got {text!r}")
        return text.strip().lower()


SETTINGS: dict[str, SettingSpec] = {
    spec.key: spec
    for spec in (
        SettingSpec("viewMode", ("continuous", "page")),
        SettingSpec("fontSize", ("small", "medium", "large")),
        SettingSpec("lineHeight", ("normal", "wide")),
        SettingSpec("margin", ("normal", "wide")),
        SettingSpec("font", ("sans", "mono")),
        SettingSpec("einkMode"),
        SettingSpec("haptic"),
        SettingSpec("sound"),
        SettingSpec("scrollAccel", ("slow", "normal")),
    )
}


def get_spec(key: str) -> SettingSpec:
    """Look up a recognized setting.

    Raises:
        ConstraintError: If key is not one of the recognized settings.
    """
    try:
        return SETTINGS[key]
    except KeyError:
        raise ConstraintError(f"Unknown setting: {key!r}") from None


class SettingsRepository:
    """Typed get/set access to the settings table."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def get_all(self) -> dict[str, SettingValue]:
        """Return every recognized setting with its decoded value.

        A missing or undecodable row yields the default for that key.
        Rows with unrecognized keys are ignored.
        """
        raw = dict(self.raw_items())
        values: dict[str, SettingValue] = {}
        for key, spec in SETTINGS.items():
            if key not in raw:
                logger.warning("Setting %s missing, using default", key)
                values[key] = spec.default
                continue
            try:
                values[key] = spec.decode(raw[key])
            except ValueError as exc:
                logger.warning("%s; using default", exc)
                values[key] = spec.default
        return values

    def get(self, key: str) -> SettingValue:
        """Return the decoded value of one setting."""
        get_spec(key)
        return self.get_all()[key]

    def update(self, key: str, value: SettingValue) -> None:
        """Store a new value for one setting.

        Raises:
            ConstraintError: If the key is unknown or the value is outside its domain.
        """
        encoded = get_spec(key).encode(value)
        with self._store.transaction() as conn:
            conn.execute(
                "INSERT INTO settings (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, encoded),
            )
        logger.debug("Setting %s = %s", key, encoded)

    def raw_items(self) -> list[tuple[str, str]]:
        """Return the stored (key, text) rows exactly as persisted, ordered by key."""
        with self._store.transaction(readonly=True) as conn:
            cursor = conn.execute("SELECT key, value FROM settings ORDER BY key")
            return [(row["key"], row["value"]) for row in cursor.fetchall()]

    def restore(self, items: Iterable[tuple[str, str]]) -> int:
        """Write already-encoded rows, replacing existing ones, then fill any gaps with defaults.

        Returns:
            The number of rows written from items.
        """
        count = 0
        with self._store.transaction() as conn:
            for key, value in items:
                conn.execute(
                    "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value)
                )
                count += 1
            conn.executemany(
                "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
                DEFAULT_SETTINGS.items(),
            )
        return count
