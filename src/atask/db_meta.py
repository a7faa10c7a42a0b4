"""MetaMixin: aggregate read queries for the CLI and dashboard.

Read-only; every figure is computed from the tables on each call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from atask.db_base import DBMixinProtocol, _now_iso
from atask.types.reports import Board, BoardColumn, StatsResult

if TYPE_CHECKING:
    from atask.core import Issue

_STATUS_ORDER = ("open", "in_progress", "resolved", "closed")
_PRIORITY_ORDER = ("low", "medium", "high", "critical")

# (status, column title, CSS color)
BOARD_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("open", "Open", "#f3f4f6"),
    ("in_progress", "In Progress", "#bfdbfe"),
    ("resolved", "Resolved", "#bbf7d0"),
    ("closed", "Closed", "#e5e7eb"),
)


class MetaMixin(DBMixinProtocol):
    """Counts and groupings over commits, issues and labels."""

    if TYPE_CHECKING:
        # From IssuesMixin
        def get_all_issues(self, *, status: str | None = None) -> list[Issue]: ...

    def _count(self, table: str) -> int:
        # *table* is always a hardcoded literal at the call site.
        result: int = self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        return result

    def count_commits(self) -> int:
        return self._count("commits")

    def count_issues(self) -> int:
        return self._count("issues")

    def count_labels(self) -> int:
        return self._count("labels")

    def issues_by_status(self) -> dict[str, int]:
        """Issue counts keyed by status, with every status present (zero-filled)."""
        counts = dict.fromkeys(_STATUS_ORDER, 0)
        for row in self.conn.execute("SELECT status, COUNT(*) AS cnt FROM issues GROUP BY status").fetchall():
            counts[row["status"]] = row["cnt"]
        return counts

    def issues_by_priority(self) -> dict[str, int]:
        counts = dict.fromkeys(_PRIORITY_ORDER, 0)
        for row in self.conn.execute("SELECT priority, COUNT(*) AS cnt FROM issues GROUP BY priority").fetchall():
            counts[row["priority"]] = row["cnt"]
        return counts

    def get_stats(self) -> StatsResult:
        totals = self.conn.execute(
            "SELECT COALESCE(SUM(insertions), 0) AS ins, COALESCE(SUM(deletions), 0) AS dels FROM commits"
        ).fetchone()
        return {
            "commits": self.count_commits(),
            "issues": self.count_issues(),
            "labels": self.count_labels(),
            "issues_by_status": self.issues_by_status(),
            "issues_by_priority": self.issues_by_priority(),
            "total_insertions": totals["ins"],
            "total_deletions": totals["dels"],
        }

    def get_board(self, title: str = "atask") -> Board:
        """Group every issue into one Kanban column per status, in insertion order."""
        by_status: dict[str, list[Issue]] = {status: [] for status, _, _ in BOARD_COLUMNS}
        for issue in self.get_all_issues():
            by_status[issue.status.value].append(issue)
        columns: list[BoardColumn] = [
            {
                "id": status.replace("_", "-"),
                "title": column_title,
                "status": status,
                "color": color,
                "cards": [i.to_dict() for i in by_status[status]],
            }
            for status, column_title, color in BOARD_COLUMNS
        ]
        return {
            "title": title,
            "columns": columns,
            "total_cards": sum(len(c["cards"]) for c in columns),
            "last_updated": _now_iso(),
        }
