# ABOUTME: Shared Click options for Gong CLI commands.
# ABOUTME: Provides reusable decorators for common flags like --db.

from pathlib import Path

import click

from gong.db.connection import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    envvar="GONG_DB",
    show_envvar=True,
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)
