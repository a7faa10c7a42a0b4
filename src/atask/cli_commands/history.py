"""CLI commands for reference data: commits, labels, create-label."""

from __future__ import annotations

import json as json_mod

import click

from atask.cli_common import fail, get_db
from atask.db_labels import DEFAULT_LABEL_COLOR
from atask.errors import ParseError


@click.command()
@click.option("--limit", "-n", default=20, type=click.IntRange(min=0), help="Max commits to show (default 20, 0 for all)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def commits(limit: int, as_json: bool) -> None:
    """List imported commits, newest first."""
    with get_db() as db:
        try:
            rows = db.get_all_commits(limit=limit or None)
        except ParseError as e:
            fail(str(e), as_json=as_json)
        if as_json:
            click.echo(json_mod.dumps([c.to_dict() for c in rows], indent=2))
            return
        if not rows:
            click.echo("No commits imported. Run 'atask import'.")
            return
        for c in rows:
            subject = c.message.splitlines()[0] if c.message else ""
            click.echo(
                f"{c.hash[:8]}  {c.commit_date:%Y-%m-%d %H:%M}  {c.author_name:<20}  "
                f"+{c.insertions} -{c.deletions}  {subject}"
            )


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def labels(as_json: bool) -> None:
    """List all labels."""
    with get_db() as db:
        all_labels = db.get_all_labels()
    if as_json:
        click.echo(json_mod.dumps([lb.to_dict() for lb in all_labels], indent=2))
        return
    if not all_labels:
        click.echo("No labels. Run 'atask seed-labels'.")
        return
    for lb in all_labels:
        desc = f"  {lb.description}" if lb.description else ""
        click.echo(f"{lb.color}  {lb.name}{desc}")


@click.command("create-label")
@click.argument("name")
@click.option("--color", default=DEFAULT_LABEL_COLOR, help="Hex color, e.g. #d73a4a")
@click.option("--description", "-d", default=None, help="Description")
def create_label(name: str, color: str, description: str | None) -> None:
    """Create a label."""
    with get_db() as db:
        try:
            label_id = db.insert_label(name, color=color, description=description)
        except ValueError as e:
            fail(str(e))
    click.echo(f"Created label #{label_id}: {name}")


def register(cli: click.Group) -> None:
    """Register history and label commands with the CLI group."""
    cli.add_command(commits)
    cli.add_command(labels)
    cli.add_command(create_label)
