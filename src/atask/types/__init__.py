"""Typed return-value contracts for atask core and API layers."""

from __future__ import annotations

from atask.types.core import (
    CommitDict,
    IssueDict,
    ISOTimestamp,
    LabelDict,
    ProjectConfig,
)
from atask.types.reports import Board, BoardColumn, StatsResult

__all__ = [
    "Board",
    "BoardColumn",
    "CommitDict",
    "ISOTimestamp",
    "IssueDict",
    "LabelDict",
    "ProjectConfig",
    "StatsResult",
]
