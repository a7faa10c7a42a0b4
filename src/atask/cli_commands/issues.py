"""CLI commands for issue CRUD: create, show, list, update-status, delete, attach, detach."""

from __future__ import annotations

import json as json_mod

import click

from atask.cli_common import fail, get_db
from atask.core import VALID_PRIORITIES, VALID_STATUSES
from atask.errors import NotFoundError, ParseError

_STATUS_HELP = ", ".join(sorted(VALID_STATUSES))
_PRIORITY_HELP = ", ".join(sorted(VALID_PRIORITIES))


@click.command()
@click.argument("title")
@click.option("--description", "-d", default=None, help="Description")
@click.option("--priority", "-p", default="medium", help=f"Priority ({_PRIORITY_HELP})")
@click.option("--status", default="open", help=f"Initial status ({_STATUS_HELP})")
@click.option("--assignee", default=None, help="Assignee")
@click.option("--label", "-l", multiple=True, help="Labels (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(
    title: str,
    description: str | None,
    priority: str,
    status: str,
    assignee: str | None,
    label: tuple[str, ...],
    as_json: bool,
) -> None:
    """Create a new issue."""
    with get_db() as db:
        try:
            issue_id = db.insert_issue(
                title,
                description=description,
                status=status,
                priority=priority,
                assignee=assignee,
                labels=list(label) if label else None,
            )
        except ValueError as e:
            fail(str(e), as_json=as_json)
        issue = db.get_issue(issue_id)
    if issue is None:  # pragma: no cover (row was just written)
        fail(f"Issue #{issue_id} vanished after insert", as_json=as_json)
    if as_json:
        click.echo(json_mod.dumps(issue.to_dict(), indent=2))
    else:
        click.echo(f"Created #{issue_id}: {issue.title}")


@click.command()
@click.argument("issue_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(issue_id: int, as_json: bool) -> None:
    """Show issue details."""
    with get_db() as db:
        try:
            issue = db.get_issue(issue_id)
        except ParseError as e:
            fail(str(e), as_json=as_json)
    if issue is None:
        fail(f"Issue not found: {issue_id}", as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps(issue.to_dict(), indent=2))
        return

    click.echo(f"ID:       {issue.id}")
    click.echo(f"Title:    {issue.title}")
    click.echo(f"Status:   {issue.status}")
    click.echo(f"Priority: {issue.priority}")
    if issue.assignee:
        click.echo(f"Assignee: {issue.assignee}")
    click.echo(f"Created:  {issue.created_at}")
    click.echo(f"Updated:  {issue.updated_at}")
    if issue.labels:
        click.echo(f"Labels:   {', '.join(issue.labels)}")
    if issue.description:
        click.echo(f"\n--- Description ---\n{issue.description}")


@click.command("list")
@click.option("--status", default=None, help=f"Filter by status ({_STATUS_HELP})")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_issues(status: str | None, as_json: bool) -> None:
    """List issues in creation order."""
    with get_db() as db:
        try:
            issues = db.get_all_issues(status=status)
        except ValueError as e:
            fail(str(e), as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps([i.to_dict() for i in issues], indent=2))
        return
    if not issues:
        click.echo("No issues found.")
        return
    for i in issues:
        labels = f"  [{', '.join(i.labels)}]" if i.labels else ""
        click.echo(f"#{i.id:<4} {i.status.value:<12} {i.priority.value:<9} {i.title}{labels}")


@click.command("update-status")
@click.argument("issue_id", type=int)
@click.argument("status")
def update_status(issue_id: int, status: str) -> None:
    """Move an issue to a new status."""
    with get_db() as db:
        try:
            updated = db.update_status(issue_id, status)
        except ValueError as e:
            fail(str(e))
    if not updated:
        fail(f"Issue not found: {issue_id}")
    click.echo(f"Issue #{issue_id} -> {status}")


@click.command()
@click.argument("issue_id", type=int)
def delete(issue_id: int) -> None:
    """Delete an issue and its label associations."""
    with get_db() as db:
        deleted = db.delete_issue(issue_id)
    if not deleted:
        fail(f"Issue not found: {issue_id}")
    click.echo(f"Deleted #{issue_id}")


@click.command()
@click.argument("issue_id", type=int)
@click.argument("label")
def attach(issue_id: int, label: str) -> None:
    """Attach a label to an issue."""
    with get_db() as db:
        try:
            added = db.attach_label_by_name(issue_id, label)
        except NotFoundError as e:
            fail(str(e))
    if added:
        click.echo(f"Attached '{label}' to #{issue_id}")
    else:
        click.echo(f"#{issue_id} already has '{label}'")


@click.command()
@click.argument("issue_id", type=int)
@click.argument("label")
def detach(issue_id: int, label: str) -> None:
    """Remove a label from an issue."""
    with get_db() as db:
        found = db.get_label_by_name(label)
        removed = found is not None and found.id is not None and db.detach_label(issue_id, found.id)
    if found is None:
        fail(f"Label not found: {label}")
    if removed:
        click.echo(f"Detached '{label}' from #{issue_id}")
    else:
        click.echo(f"#{issue_id} does not have '{label}'")


def register(cli: click.Group) -> None:
    """Register issue commands with the CLI group."""
    cli.add_command(create)
    cli.add_command(show)
    cli.add_command(list_issues, "list")
    cli.add_command(update_status)
    cli.add_command(delete)
    cli.add_command(attach)
    cli.add_command(detach)
