"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .atask/config.json."""

    version: int
    repo_path: str
    default_labels: bool


class CommitDict(TypedDict):
    id: int | None
    hash: str
    author_name: str
    author_email: str
    commit_date: ISOTimestamp
    message: str
    files_changed: list[str]
    insertions: int
    deletions: int


class LabelDict(TypedDict):
    id: int | None
    name: str
    color: str
    description: str | None
    created_at: ISOTimestamp


class IssueDict(TypedDict):
    id: int | None
    title: str
    description: str | None
    status: str
    priority: str
    assignee: str | None
    created_at: ISOTimestamp
    updated_at: ISOTimestamp
    labels: list[str]

# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin; this prevents circular imports.
