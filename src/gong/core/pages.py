# ABOUTME: Parser for textual page references such as "16", "19-20" or "p. 16".
# ABOUTME: The validity predicate every entry's page range must satisfy before it is stored.

import re
from typing import NamedTuple

_WHITESPACE_RE = re.compile(r"\s+")
_MARKER_RE = re.compile(r"^p\.?")
# Hyphen, en dash, em dash, and tilde all separate a range.
_RANGE_RE = re.compile(r"^([0-9]+)[-–—~]([0-9]+)$")
_SINGLE_RE = re.compile(r"^([0-9]+)$")


class PageRange(NamedTuple):
    """An inclusive page span. A single page has start == end."""

    start: int
    end: int


def is_valid_range(start: int, end: int) -> bool:
    """Whether (start, end) is a storable page span."""
    return start >= 1 and end >= start


def parse_page_range(text: str) -> PageRange | None:
    """Parse a page reference into a PageRange.

    The input is lower-cased, stripped of whitespace and of a leading
    ``p`` / ``p.`` marker. What remains must be a single page (``16``) or
    a range (``19-20``). Out-of-order or zero pages are rejected rather
    than clamped.

    Args:
        text: Free-form page reference typed by the user.

    Returns:
        The parsed PageRange, or None if the text is not a valid reference.
    """
    cleaned = _WHITESPACE_RE.sub("", text.lower())
    cleaned = _MARKER_RE.sub("", cleaned, count=1)

    match = _RANGE_RE.match(cleaned)
    if match:
        start, end = int(match.group(1)), int(match.group(2))
        return PageRange(start, end) if is_valid_range(start, end) else None

    match = _SINGLE_RE.match(cleaned)
    if match:
        page = int(match.group(1))
        return PageRange(page, page) if page >= 1 else None

    return None


def format_page_range(start: int, end: int) -> str:
    """Render a page span for display: ``p.16`` or ``p.19-20``."""
    if start == end:
        return f"p.{start}"
    return f"p.{start}-{end}"
