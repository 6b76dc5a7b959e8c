# ABOUTME: End-to-end tests for the Gong CLI.
# ABOUTME: Drives book, entry, settings, summary, and backup commands via Click's CliRunner.

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from gong.cli import cli
from gong.db.books import BookRepository
from gong.db.connection import open_store
from gong.db.entries import EntryRepository
from gong.db.settings import SettingsRepository


def _only_book_id(db_path: Path) -> str:
    with open_store(db_path) as store:
        (book,) = BookRepository(store).get_all()
    return book.id


def _add_demian(runner: CliRunner, db_path: Path) -> str:
    result = runner.invoke(
        cli,
        [
            "book", "add", "Demian", "Hermann Hesse",
            "--rating", "4.5", "--date", "2024-01-01",
            "--review", "A coming-of-age classic.",
            "--db", str(db_path),
        ],
    )
    assert result.exit_code == 0, result.output
    return _only_book_id(db_path)


class TestBookCommands:
    """E2E tests for `gong book`."""

    def test_add_and_list(self, db_path: Path) -> None:
        runner = CliRunner()
        _add_demian(runner, db_path)

        result = runner.invoke(cli, ["book", "ls", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "Demian" in result.output
        assert "1 book(s)" in result.output

    def test_empty_list(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["book", "ls", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "No books" in result.output

    def test_db_from_environment(self, db_path: Path) -> None:
        """GONG_DB selects the database when --db is not given."""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["book", "add", "Demian", "Hesse", "--rating", "4"],
            env={"GONG_DB": str(db_path)},
        )
        assert result.exit_code == 0, result.output
        assert _only_book_id(db_path)

    def test_add_rejects_bad_rating(self, db_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["book", "add", "Demian", "Hesse", "--rating", "7", "--db", str(db_path)]
        )
        assert result.exit_code == 1
        assert "Error" in result.output
        with open_store(db_path) as store:
            assert BookRepository(store).get_all() == []

    def test_add_defaults_date_to_today(self, db_path: Path) -> None:
        from datetime import date

        CliRunner().invoke(
            cli, ["book", "add", "Demian", "Hesse", "--rating", "4", "--db", str(db_path)]
        )
        with open_store(db_path) as store:
            (book,) = BookRepository(store).get_all()
        assert book.registered_date == date.today().isoformat()

    def test_show(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        runner.invoke(cli, ["entry", "add", book_id, "p.16", "The egg.", "--db", str(db_path)])

        result = runner.invoke(cli, ["book", "show", book_id, "--db", str(db_path)])
        assert result.exit_code == 0
        assert "Hermann Hesse" in result.output
        assert "coming-of-age" in result.output
        assert "p.16" in result.output

    def test_show_missing(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["book", "show", "nope", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_edit_changes_only_given_fields(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)

        result = runner.invoke(
            cli, ["book", "edit", book_id, "--rating", "5", "--db", str(db_path)]
        )
        assert result.exit_code == 0

        with open_store(db_path) as store:
            book = BookRepository(store).get_by_id(book_id)
        assert book is not None
        assert book.rating == 5.0
        assert book.title == "Demian"

    def test_edit_missing_book(self, db_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["book", "edit", "nope", "--title", "X", "--db", str(db_path)]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_rm_cascades(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        runner.invoke(cli, ["entry", "add", book_id, "16", "Note", "--db", str(db_path)])

        result = runner.invoke(cli, ["book", "rm", book_id, "--yes", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "Deleted" in result.output

        with open_store(db_path) as store:
            assert BookRepository(store).get_all() == []
            assert EntryRepository(store).get_all() == []

    def test_rm_asks_for_confirmation(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)

        result = runner.invoke(cli, ["book", "rm", book_id, "--db", str(db_path)], input="n\n")
        assert result.exit_code != 0
        with open_store(db_path) as store:
            assert BookRepository(store).get_by_id(book_id) is not None


class TestEntryCommands:
    """E2E tests for `gong entry`."""

    def test_add_and_list_in_page_order(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        for pages, text in [("16", "first"), ("19-20", "span"), ("p. 16", "second")]:
            result = runner.invoke(
                cli, ["entry", "add", book_id, pages, text, "--db", str(db_path)]
            )
            assert result.exit_code == 0, result.output

        with open_store(db_path) as store:
            texts = [e.text for e in EntryRepository(store).get_by_book_id(book_id)]
        assert texts == ["first", "second", "span"]

        result = runner.invoke(cli, ["entry", "ls", book_id, "--db", str(db_path)])
        assert result.exit_code == 0
        assert "p.19-20" in result.output
        assert "3 entry(ies)" in result.output

    def test_invalid_pages_rejected(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)

        result = runner.invoke(cli, ["entry", "add", book_id, "20-19", "x", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "Invalid page reference" in result.output

    def test_unknown_book_rejected(self, db_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["entry", "add", "nope", "3", "x", "--db", str(db_path)]
        )
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_edit_and_rm(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        runner.invoke(cli, ["entry", "add", book_id, "3", "old", "--db", str(db_path)])
        with open_store(db_path) as store:
            (entry,) = EntryRepository(store).get_by_book_id(book_id)

        result = runner.invoke(
            cli,
            ["entry", "edit", entry.id, "--pages", "4-5", "--text", "new", "--db", str(db_path)],
        )
        assert result.exit_code == 0
        with open_store(db_path) as store:
            updated = EntryRepository(store).get_by_id(entry.id)
        assert updated is not None
        assert (updated.page_start, updated.page_end, updated.text) == (4, 5, "new")

        result = runner.invoke(cli, ["entry", "rm", entry.id, "--db", str(db_path)])
        assert result.exit_code == 0
        result = runner.invoke(cli, ["entry", "rm", entry.id, "--db", str(db_path)])
        assert result.exit_code == 1


class TestSettingsCommands:
    """E2E tests for `gong settings`."""

    def test_show_lists_all_keys(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["settings", "show", "--db", str(db_path)])
        assert result.exit_code == 0
        for key in ("viewMode", "fontSize", "einkMode", "scrollAccel"):
            assert key in result.output

    def test_set_boolean(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["settings", "set", "haptic", "on", "--db", str(db_path)])
        assert result.exit_code == 0
        with open_store(db_path) as store:
            assert SettingsRepository(store).get("haptic") is True

    def test_set_unknown_key(self, db_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["settings", "set", "fontColor", "red", "--db", str(db_path)]
        )
        assert result.exit_code == 1
        assert "Unknown setting" in result.output

    def test_set_bad_value(self, db_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["settings", "set", "fontSize", "huge", "--db", str(db_path)]
        )
        assert result.exit_code == 1


class TestSummaryCommand:
    """E2E tests for `gong summary`."""

    def test_text_digest(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        runner.invoke(cli, ["entry", "add", book_id, "16", "Note", "--db", str(db_path)])

        result = runner.invoke(cli, ["summary", "2024", "1", "--text", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "2024.01" in result.output
        assert "Demian · ★4.5  |  1" in result.output

    def test_empty_month(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["summary", "2024", "2", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "No books" in result.output

    def test_month_out_of_range(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["summary", "2024", "13", "--db", str(db_path)])
        assert result.exit_code == 2


class TestBackupCommands:
    """E2E tests for `gong backup`."""

    def test_export_import_round_trip(self, db_path: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        runner.invoke(cli, ["entry", "add", book_id, "16", "Note", "--db", str(db_path)])
        backup_file = tmp_path / "out" / "backup.json"

        result = runner.invoke(
            cli, ["backup", "export", "-o", str(backup_file), "--db", str(db_path)]
        )
        assert result.exit_code == 0
        assert json.loads(backup_file.read_text())["books"][0]["id"] == book_id

        other_db = tmp_path / "other.db"
        result = runner.invoke(
            cli, ["backup", "import", str(backup_file), "--yes", "--db", str(other_db)]
        )
        assert result.exit_code == 0
        assert "Restored 1 book(s), 1 entry(ies), 9 setting(s)" in result.output
        assert _only_book_id(other_db) == book_id

    def test_export_default_name(self, db_path: Path) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["backup", "export", "--db", str(db_path)])
            assert result.exit_code == 0
            assert list(Path.cwd().glob("gong_backup_*.json"))

    def test_import_bad_file_leaves_library(self, db_path: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"books": [], "entries": []}))

        result = runner.invoke(cli, ["backup", "import", str(bad), "--yes", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "library unchanged" in result.output
        assert _only_book_id(db_path) == book_id

    def test_import_aborts_without_confirmation(self, db_path: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        _add_demian(runner, db_path)
        backup_file = tmp_path / "b.json"
        runner.invoke(cli, ["backup", "export", "-o", str(backup_file), "--db", str(db_path)])

        result = runner.invoke(
            cli, ["backup", "import", str(backup_file), "--db", str(db_path)], input="n\n"
        )
        assert result.exit_code != 0
        assert "Restored" not in result.output


class TestStoreErrors:
    """Store failures end in a red message and exit status 1, never a traceback."""

    @pytest.mark.parametrize(
        "args",
        [
            ["book", "add", "Demian", "Hermann Hesse", "--rating", "4.5"],
            ["book", "ls"],
            ["book", "show", "some-id"],
            ["book", "edit", "some-id", "--rating", "3"],
            ["book", "rm", "some-id", "--yes"],
            ["entry", "add", "some-id", "3", "note"],
            ["entry", "ls", "some-id"],
            ["entry", "edit", "some-id", "--text", "new"],
            ["entry", "rm", "some-id"],
            ["settings", "show"],
            ["settings", "set", "haptic", "on"],
            ["summary", "2024", "1"],
        ],
    )
    def test_unreadable_database(self, tmp_path: Path, args: list[str]) -> None:
        garbage = tmp_path / "garbage.db"
        garbage.write_bytes(b"this is not a sqlite database\n" * 20)

        result = CliRunner().invoke(cli, [*args, "--db", str(garbage)])

        assert result.exit_code == 1, result.output
        assert isinstance(result.exception, SystemExit)
        assert "Error" in result.output

    def test_backup_with_unreadable_database(self, tmp_path: Path) -> None:
        garbage = tmp_path / "garbage.db"
        garbage.write_bytes(b"this is not a sqlite database\n" * 20)
        snapshot = tmp_path / "backup.json"
        snapshot.write_text(json.dumps({"version": "1.0.0", "books": [], "entries": []}))
        runner = CliRunner()

        result = runner.invoke(
            cli, ["backup", "export", "-o", str(tmp_path / "out.json"), "--db", str(garbage)]
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert not (tmp_path / "out.json").exists()

        result = runner.invoke(
            cli, ["backup", "import", str(snapshot), "--yes", "--db", str(garbage)]
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_oversized_page_rejected(self, db_path: Path) -> None:
        runner = CliRunner()
        book_id = _add_demian(runner, db_path)

        result = runner.invoke(
            cli, ["entry", "add", book_id, "99999999999999999999", "x", "--db", str(db_path)]
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "too large" in result.output
        with open_store(db_path) as store:
            assert EntryRepository(store).get_by_book_id(book_id) == []


class TestRootCommand:
    """E2E tests for the root group."""

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("book", "entry", "settings", "backup", "summary"):
            assert name in result.output

    def test_verbose_flag(self, db_path: Path) -> None:
        result = CliRunner().invoke(cli, ["-v", "book", "ls", "--db", str(db_path)])
        assert result.exit_code == 0
