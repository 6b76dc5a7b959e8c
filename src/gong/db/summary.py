# ABOUTME: Monthly reading summary: books started in a month with their entry counts.
# ABOUTME: Also renders the summary as a plain-text digest suitable for sharing.

import calendar
from dataclasses import dataclass, field

from gong.db.connection import Store
from gong.db.mapping import Book, row_to_book


@dataclass(frozen=True)
class BookSummary:
    """A book and how many entries it has."""

    book: Book
    entry_count: int


@dataclass
class MonthlySummary:
    """Books whose registered date falls in one calendar month."""

    year: int
    month: int
    books: list[BookSummary] = field(default_factory=list)

    @property
    def book_count(self) -> int:
        return len(self.books)

    @property
    def entry_count(self) -> int:
        return sum(item.entry_count for item in self.books)

    @property
    def average_rating(self) -> float:
        """Mean rating rounded to one decimal, or 0.0 for an empty month."""
        if not self.books:
            return 0.0
        return round(sum(item.book.rating for item in self.books) / len(self.books), 1)

    @property
    def label(self) -> str:
        return f"{self.year}.{self.month:02d}"


def summarize_month(store: Store, year: int, month: int) -> MonthlySummary:
    """Collect the books registered in the given month, ordered by title.

    Registered dates that are not ISO-8601 dates never match any month.

    Raises:
        ValueError: If month is not in 1..12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    start = f"{year:04d}-{month:02d}-01"
    end = f"{year:04d}-{month:02d}-{last_day:02d}"

    with store.transaction(readonly=True) as conn:
        cursor = conn.execute(
            "SELECT b.*, COUNT(e.id) AS entry_count "
            "FROM books b "
            "LEFT JOIN entries e ON e.book_id = b.id "
            "WHERE date(b.registered_date) BETWEEN date(?) AND date(?) "
            "GROUP BY b.id "
            "ORDER BY b.title COLLATE NOCASE, b.id",
            (start, end),
        )
        rows = cursor.fetchall()

    return MonthlySummary(
        year=year,
        month=month,
        books=[BookSummary(book=row_to_book(row), entry_count=row["entry_count"]) for row in rows],
    )


def render_summary_text(summary: MonthlySummary) -> str:
    """Render a summary as a shareable plain-text digest."""
    lines = [
        f"# Monthly reading log · {summary.label}",
        f"- {summary.book_count} book(s) · {summary.entry_count} entry(ies) "
        f"· avg ★{summary.average_rating:.1f}",
        "",
    ]
    for item in summary.books:
        lines.append(f"{item.book.title} · ★{item.book.rating:.1f}  |  {item.entry_count}")
        if item.book.review:
            lines.append(item.book.review)
        lines.append("")
    return "\n".join(lines)
