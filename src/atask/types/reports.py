"""TypedDicts for db_meta.py and dashboard board payloads."""

from __future__ import annotations

from typing import TypedDict

from atask.types.core import IssueDict


class StatsResult(TypedDict):
    """Aggregate stats returned by ``get_stats()``."""

    commits: int
    issues: int
    labels: int
    issues_by_status: dict[str, int]
    issues_by_priority: dict[str, int]
    total_insertions: int
    total_deletions: int


class BoardColumn(TypedDict):
    """One Kanban column: every issue currently in ``status``."""

    id: str
    title: str
    status: str
    color: str
    cards: list[IssueDict]


class Board(TypedDict):
    title: str
    columns: list[BoardColumn]
    total_cards: int
    last_updated: str
