"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from atask.cli import cli
from tests.conftest import GitRepoBuilder


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize an atask project (no Git import) in tmp_path and return (runner, project_root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init", "--no-import"])
    assert result.exit_code == 0, result.output
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


@pytest.fixture
def cli_in_git_repo(git_repo: GitRepoBuilder, cli_runner: CliRunner) -> Generator[tuple[CliRunner, GitRepoBuilder], None, None]:
    """A Git repository with three commits, cwd set to its work tree (not yet initialized)."""
    for name in ("aaa", "bbb", "ccc"):
        git_repo.commit(f"add {name}", {f"{name}.txt": f"{name}\n"})
    original_cwd = os.getcwd()
    os.chdir(str(git_repo.path))
    yield cli_runner, git_repo
    os.chdir(original_cwd)


def _extract_id(create_output: str) -> int:
    """Extract issue ID from 'Created #3: Title' output."""
    return int(create_output.split(":")[0].replace("Created #", "").strip())
