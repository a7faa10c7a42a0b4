"""Shared pytest fixtures for atask tests."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from click.testing import CliRunner
from git import Actor, Repo

from atask.core import AtaskDB


@pytest.fixture
def db(tmp_path: Path) -> Generator[AtaskDB, None, None]:
    """Fresh AtaskDB for each test."""
    d = AtaskDB(tmp_path / "atask.db")
    d.initialize()
    yield d
    d.close()


@pytest.fixture
def populated_db(db: AtaskDB) -> AtaskDB:
    """AtaskDB pre-populated with a representative issue set.

    Creates:
    - The 8 default labels
    - A: open/high with labels ["bug"]
    - B: in_progress/medium, assigned to alice
    - C: closed/low with labels ["documentation", "good first issue"]
    """
    db.create_default_labels()
    a = db.insert_issue("Issue A", priority="high", labels=["bug"])
    b = db.insert_issue("Issue B", status="in_progress", assignee="alice")
    c = db.insert_issue("Issue C", status="closed", priority="low", labels=["documentation", "good first issue"])
    # Store IDs for easy access in tests
    db._test_ids: dict[str, int] = {"a": a, "b": b, "c": c}  # type: ignore[attr-defined]
    return db


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


# ---------------------------------------------------------------------------
# Throwaway Git repositories
# ---------------------------------------------------------------------------

DEFAULT_AUTHOR = Actor("Alice Example", "alice@example.com")
# 2024-01-01T10:00:00Z
BASE_EPOCH = 1704103200


@dataclass
class GitRepoBuilder:
    """Writes files and commits them through GitPython's index API."""

    path: Path
    repo: Repo
    commits: list[str] = field(default_factory=list)

    def commit(
        self,
        message: str,
        files: dict[str, str] | None = None,
        *,
        author: Actor = DEFAULT_AUTHOR,
        when: int | None = None,
        offset: str = "+0000",
    ) -> str:
        """Write *files* (path -> content), stage them and commit. Returns the hexsha."""
        for rel, content in (files or {}).items():
            target = self.path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.repo.index.add([str(target)])
        stamp = when if when is not None else BASE_EPOCH + 60 * len(self.commits)
        date = f"{stamp} {offset}"
        c = self.repo.index.commit(message, author=author, committer=author, author_date=date, commit_date=date)
        self.commits.append(c.hexsha)
        return c.hexsha

    def remove(self, message: str, *paths: str) -> str:
        self.repo.git.rm("--", *paths)
        return self.commit(message)


@pytest.fixture
def git_repo(tmp_path: Path) -> Generator[GitRepoBuilder, None, None]:
    """An empty Git repository in tmp_path/repo."""
    path = tmp_path / "repo"
    path.mkdir()
    repo = Repo.init(path)
    with repo.config_writer() as cw:
        cw.set_value("user", "name", DEFAULT_AUTHOR.name)
        cw.set_value("user", "email", DEFAULT_AUTHOR.email)
    yield GitRepoBuilder(path=path, repo=repo)
    repo.close()
