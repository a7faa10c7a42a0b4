"""CLI commands for admin: init, import, seed-labels, stats, dashboard."""

from __future__ import annotations

import json as json_mod
import logging
from pathlib import Path
from time import perf_counter

import click

from atask.cli_common import fail, get_db
from atask.core import (
    ATASK_DIR_NAME,
    CONFIG_FILENAME,
    DB_FILENAME,
    AtaskDB,
    find_atask_root,
    read_config,
    write_config,
)
from atask.errors import AtaskError
from atask.logging import setup_logging

logger = logging.getLogger(__name__)

SAMPLE_ISSUE_TITLE = "Setup project documentation"
SAMPLE_ISSUE_DESCRIPTION = "Create README.md and setup documentation for the project"
SAMPLE_ISSUE_LABELS = ("documentation", "good first issue")


def _print_stats(db: AtaskDB) -> None:
    stats = db.get_stats()
    click.echo(f"  Commits: {stats['commits']} (+{stats['total_insertions']} -{stats['total_deletions']})")
    click.echo(f"  Labels:  {stats['labels']}")
    click.echo(f"  Issues:  {stats['issues']}")
    for status, count in stats["issues_by_status"].items():
        click.echo(f"    {status:<12} {count}")


@click.command()
@click.option("--no-import", is_flag=True, help="Skip importing commits from Git history")
@click.option("--no-labels", is_flag=True, help="Skip creating the default labels")
@click.option("--sample-issue", is_flag=True, help="Create a sample issue when the tracker is empty")
def init(no_import: bool, no_labels: bool, sample_issue: bool) -> None:
    """Initialize .atask/ in the current directory and import Git history."""
    cwd = Path.cwd()
    atask_dir = cwd / ATASK_DIR_NAME

    if atask_dir.exists():
        click.echo(f"{ATASK_DIR_NAME}/ already exists in {cwd}")
    else:
        atask_dir.mkdir()
        click.echo(f"Initialized {ATASK_DIR_NAME}/ in {cwd}")
    if not (atask_dir / CONFIG_FILENAME).exists():
        write_config(atask_dir, {"version": 1, "repo_path": str(cwd), "default_labels": not no_labels})

    setup_logging(atask_dir)
    config = read_config(atask_dir)

    with AtaskDB(atask_dir / DB_FILENAME) as db:
        db.initialize()
        click.echo(f"  Database: {atask_dir / DB_FILENAME}")

        if not no_labels and config.get("default_labels", True):
            created = db.create_default_labels()
            click.echo(f"  Labels: {created} default label(s) created")

        if not no_import:
            repo_path = config.get("repo_path") or str(cwd)
            try:
                count = db.populate_from_git_history(repo_path)
            except AtaskError as e:
                logger.warning("Import during init failed: %s", e, extra={"command": "init", "error": str(e)})
                click.echo(f"Warning: could not import Git history: {e}", err=True)
            else:
                if count:
                    click.echo(f"  Imported {count} commit(s) from Git history")
                else:
                    click.echo("  No new commits to import")

        if sample_issue and db.count_issues() == 0:
            wanted = [name for name in SAMPLE_ISSUE_LABELS if db.get_label_by_name(name) is not None]
            issue_id = db.insert_issue(SAMPLE_ISSUE_TITLE, description=SAMPLE_ISSUE_DESCRIPTION, labels=wanted)
            click.echo(f"  Created sample issue #{issue_id}")

        click.echo("\nCurrent state:")
        _print_stats(db)
    click.echo("\nNext: atask create \"Your first issue\"")


@click.command("import")
@click.option("--repo", "repo", default=None, type=click.Path(file_okay=False), help="Repository path (default: configured repo)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def import_commits(repo: str | None, as_json: bool) -> None:
    """Import commits from Git history that are not stored yet."""
    started = perf_counter()
    with get_db() as db:
        if repo is None:
            repo = read_config(find_atask_root()).get("repo_path")
        try:
            count = db.populate_from_git_history(repo)
        except AtaskError as e:
            logger.error("Import failed: %s", e, extra={"command": "import", "error": str(e)})
            fail(str(e), as_json=as_json)
        total = db.count_commits()
    logger.info(
        "import finished",
        extra={"command": "import", "args_data": {"repo": repo}, "duration_ms": round((perf_counter() - started) * 1000, 2)},
    )
    if as_json:
        click.echo(json_mod.dumps({"imported": count, "total_commits": total}))
    elif count:
        click.echo(f"Imported {count} new commit(s) ({total} total)")
    else:
        click.echo(f"No new commits to import ({total} total)")


@click.command("seed-labels")
def seed_labels() -> None:
    """Create any missing default labels."""
    with get_db() as db:
        created = db.create_default_labels()
    click.echo(f"Created {created} default label(s)")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool) -> None:
    """Show project statistics."""
    with get_db() as db:
        if as_json:
            click.echo(json_mod.dumps(db.get_stats(), indent=2))
            return
        click.echo("Project statistics:")
        _print_stats(db)
        by_priority = db.issues_by_priority()
        click.echo("  By priority:")
        for priority, count in by_priority.items():
            click.echo(f"    {priority:<12} {count}")


@click.command()
@click.option("--port", default=8377, type=int, help="Server port (default 8377)")
@click.option("--no-browser", is_flag=True, help="Don't auto-open browser")
def dashboard(port: int, no_browser: bool) -> None:
    """Launch the Kanban web dashboard."""
    from atask.dashboard import main as dashboard_main

    try:
        dashboard_main(port=port, no_browser=no_browser)
    except FileNotFoundError:
        fail(f"No {ATASK_DIR_NAME}/ found. Run 'atask init' first.")


def register(cli: click.Group) -> None:
    """Register admin commands with the CLI group."""
    cli.add_command(init)
    cli.add_command(import_commits)
    cli.add_command(seed_labels)
    cli.add_command(stats)
    cli.add_command(dashboard)
