"""Shared CLI helpers.

Provides ``get_db()`` and ``fail()`` so that ``cli.py`` and the
``cli_commands/*.py`` modules can access them without circular imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from typing import NoReturn

import click

from atask.core import ATASK_DIR_NAME, DB_FILENAME, AtaskDB, find_atask_root
from atask.logging import setup_logging


def get_db() -> AtaskDB:
    """Discover .atask/ and return an initialized AtaskDB."""
    try:
        atask_dir = find_atask_root()
    except FileNotFoundError:
        click.echo(f"No {ATASK_DIR_NAME}/ found. Run 'atask init' first.", err=True)
        sys.exit(1)
    setup_logging(atask_dir)
    db = AtaskDB(atask_dir / DB_FILENAME)
    db.initialize()
    return db


def fail(message: str, *, as_json: bool = False) -> NoReturn:
    """Report an error (stderr, or a JSON object on stdout) and exit 1."""
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)
