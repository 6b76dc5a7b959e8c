# ABOUTME: CLI package for Gong, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from gong.cli.commands import backup_cmd, book_cmd, entry_cmd, settings_cmd, summary_cmd


@click.group()
@click.version_option(package_name="gong")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Gong - keep reading notes anchored to the pages they came from."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


cli.add_command(book_cmd.book)
cli.add_command(entry_cmd.entry)
cli.add_command(settings_cmd.settings)
cli.add_command(backup_cmd.backup)
cli.add_command(summary_cmd.summary)
