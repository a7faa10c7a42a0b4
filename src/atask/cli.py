"""CLI for atask.

Convention-based: discovers .atask/ by walking up from cwd.

Usage:
    atask init                                  # Initialize .atask/ and import history
    atask import                                # Import new commits from Git
    atask commits --limit 10                    # Recent commits
    atask labels                                # List labels
    atask create "Fix the bug" -l bug -p high   # Create issue
    atask show <id>                             # Show issue details
    atask list --status=open                    # List issues
    atask update-status <id> resolved           # Move issue
    atask attach <id> <label>                   # Attach label
    atask stats                                 # Project statistics
    atask dashboard                             # Kanban board in the browser
"""

from __future__ import annotations

import click

from atask import __version__
from atask.cli_commands import admin, history, issues


@click.group()
@click.version_option(version=__version__, prog_name="atask")
def cli() -> None:
    """atask: Git history and issue tracking in one local store."""


admin.register(cli)
history.register(cli)
issues.register(cli)


if __name__ == "__main__":
    cli()
