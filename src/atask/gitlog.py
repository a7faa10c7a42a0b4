"""Read commit history from a local Git repository.

``read_commits()`` opens the repository eagerly (so an invalid path fails at
the call site) and returns a generator that walks HEAD one commit at a time.
Every call starts a fresh walk.

Diff stats come from the first parent only. Root commits are diffed against
the empty tree and merge commits against their first parent. Renames are not
detected, so a renamed file shows up as its old and new path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.objects import Commit as GitCommit
from git.objects.util import altz_to_utctz_str

from atask.db_base import parse_timestamp
from atask.errors import ParseError, RepositoryError

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"
UNKNOWN_EMAIL = "unknown@example.com"

# Object id of the empty tree; root commits are diffed against it.
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


@dataclass(frozen=True)
class CommitRecord:
    """One normalized revision as read from the repository."""

    hash: str
    author_name: str
    author_email: str
    commit_date: datetime
    message: str
    files_changed: tuple[str, ...]
    insertions: int
    deletions: int
    parent_count: int = 1


def open_repo(repo_path: str | Path) -> Repo:
    """Open the repository containing *repo_path*, or raise RepositoryError."""
    path = Path(repo_path)
    try:
        return Repo(str(path), search_parent_directories=True)
    except NoSuchPathError:
        msg = f"Repository path does not exist: {path}"
        raise RepositoryError(msg) from None
    except InvalidGitRepositoryError:
        msg = f"Not a Git repository: {path}"
        raise RepositoryError(msg) from None


def read_commits(repo_path: str | Path, *, reverse: bool = True) -> Iterator[CommitRecord]:
    """Yield a CommitRecord for every commit reachable from HEAD.

    *reverse* (default) walks oldest-first; pass ``reverse=False`` for
    newest-first. A repository without commits yields nothing.
    """
    repo = open_repo(repo_path)
    if not repo.head.is_valid():
        logger.info("Repository at %s has no commits", repo.working_dir)
        repo.close()
        return iter(())
    return _walk(repo, reverse=reverse)


def _walk(repo: Repo, *, reverse: bool) -> Iterator[CommitRecord]:
    try:
        for commit in repo.iter_commits("HEAD", reverse=reverse):
            yield commit_to_record(commit)
    except GitCommandError as exc:
        msg = f"Failed to walk history of {repo.working_dir}: {exc}"
        raise RepositoryError(msg) from exc
    finally:
        repo.close()


def diff_numstat(commit: GitCommit) -> tuple[tuple[str, ...], int, int]:
    """Touched paths and line totals of *commit* against its first parent.

    Uses ``--numstat -z`` so paths come back verbatim; without ``-z`` git
    quotes and octal-escapes non-ASCII names. Binary files count as touched
    with zero lines.
    """
    base = commit.parents[0].hexsha if commit.parents else EMPTY_TREE_SHA
    output = commit.repo.git.diff(base, commit.hexsha, "--", numstat=True, no_renames=True, z=True)
    files: list[str] = []
    insertions = deletions = 0
    for entry in output.split("\0"):
        if not entry:
            continue
        added, removed, path = entry.lstrip("\n").split("\t", 2)
        files.append(path)
        if added != "-":
            insertions += int(added)
        if removed != "-":
            deletions += int(removed)
    return tuple(files), insertions, deletions


def commit_to_record(commit: GitCommit) -> CommitRecord:
    """Normalize a GitPython commit: author, UTC author date, touched files, line deltas."""
    raw_date = f"{commit.authored_date} {altz_to_utctz_str(commit.author_tz_offset)}"
    try:
        commit_date = parse_timestamp(raw_date)
    except ParseError as exc:
        msg = f"Commit {commit.hexsha}: {exc}"
        raise ParseError(msg) from exc

    files, insertions, deletions = diff_numstat(commit)

    message = commit.message
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")

    return CommitRecord(
        hash=commit.hexsha,
        author_name=commit.author.name or UNKNOWN_AUTHOR,
        author_email=commit.author.email or UNKNOWN_EMAIL,
        commit_date=commit_date,
        message=message.rstrip("\n") or "No message",
        files_changed=files,
        insertions=insertions,
        deletions=deletions,
        parent_count=len(commit.parents),
    )
