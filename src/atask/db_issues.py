"""IssuesMixin: issue CRUD and status transitions.

All methods access ``self.conn`` and ``self._write_lock`` via Python's MRO
when composed into ``AtaskDB``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from atask.db_base import DBMixinProtocol, _next_timestamp, _now_iso
from atask.validation import sanitize_name, validate_title

if TYPE_CHECKING:
    from atask.core import Issue, IssuePriority, IssueStatus

logger = logging.getLogger(__name__)


class IssuesMixin(DBMixinProtocol):
    """Issue CRUD. Status and priority are validated before any SQL runs."""

    if TYPE_CHECKING:
        # From LabelsMixin
        def _validate_label_name(self, name: str) -> str: ...

    # -- Issue CRUD ----------------------------------------------------------

    def insert_issue(
        self,
        title: str,
        *,
        description: str | None = None,
        status: IssueStatus | str = "open",
        priority: IssuePriority | str = "medium",
        assignee: str | None = None,
        labels: list[str] | None = None,
    ) -> int:
        """Create an issue, attach the named labels, and return the new id.

        Raises ValueError for an empty title, an unknown status/priority, or a
        label name that does not exist. Nothing is written in those cases.
        """
        from atask.core import IssuePriority, IssueStatus

        validate_title(title)
        status = IssueStatus.parse(status)
        priority = IssuePriority.parse(priority)
        if assignee is not None:
            cleaned, err = sanitize_name(assignee, kind="Assignee")
            if err:
                raise ValueError(err)
            assignee = cleaned

        with self._write_lock:
            label_ids: list[int] = []
            if labels:
                names = [self._validate_label_name(n) for n in labels]
                placeholders = ",".join("?" * len(names))
                found = {
                    r["name"]: r["id"]
                    for r in self.conn.execute(f"SELECT id, name FROM labels WHERE name IN ({placeholders})", names).fetchall()
                }
                missing = [n for n in names if n not in found]
                if missing:
                    msg = f"Unknown label(s): {', '.join(missing)}"
                    raise ValueError(msg)
                label_ids = [found[n] for n in names]

            now = _now_iso()
            try:
                cursor = self.conn.execute(
                    "INSERT INTO issues (title, description, status, priority, assignee, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (title, description, status.value, priority.value, assignee, now, now),
                )
                issue_id = cursor.lastrowid
                if issue_id is None:  # pragma: no cover (INSERT always sets lastrowid)
                    msg = "INSERT did not produce a lastrowid"
                    raise RuntimeError(msg)
                for label_id in label_ids:
                    self.conn.execute(
                        "INSERT OR IGNORE INTO issue_labels (issue_id, label_id) VALUES (?, ?)",
                        (issue_id, label_id),
                    )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

        logger.debug("Created issue %d: %s", issue_id, title)
        return issue_id

    def get_issue(self, issue_id: int) -> Issue | None:
        row = self.conn.execute("SELECT * FROM issues WHERE id = ?", (issue_id,)).fetchone()
        if row is None:
            return None
        return self._build_issues([row])[0]

    def get_all_issues(self, *, status: IssueStatus | str | None = None) -> list[Issue]:
        """All issues in insertion order, optionally restricted to one status."""
        from atask.core import IssueStatus

        if status is None:
            rows = self.conn.execute("SELECT * FROM issues ORDER BY id").fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM issues WHERE status = ? ORDER BY id",
                (IssueStatus.parse(status).value,),
            ).fetchall()
        return self._build_issues(rows)

    def _build_issues(self, rows: list[sqlite3.Row]) -> list[Issue]:
        """Build Issues with labels fetched in one batched query (no N+1)."""
        from atask.core import Issue, IssuePriority, IssueStatus

        if not rows:
            return []
        ids = [r["id"] for r in rows]
        placeholders = ",".join("?" * len(ids))
        labels_by_id: dict[int, list[str]] = {iid: [] for iid in ids}
        for r in self.conn.execute(
            f"SELECT il.issue_id, l.name FROM issue_labels il JOIN labels l ON l.id = il.label_id "
            f"WHERE il.issue_id IN ({placeholders}) ORDER BY l.name",
            ids,
        ).fetchall():
            labels_by_id[r["issue_id"]].append(r["name"])

        return [
            Issue(
                id=row["id"],
                title=row["title"],
                description=row["description"],
                status=IssueStatus.decode(row["status"], row_id=row["id"]),
                priority=IssuePriority.decode(row["priority"], row_id=row["id"]),
                assignee=row["assignee"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
                labels=labels_by_id[row["id"]],
            )
            for row in rows
        ]

    def update_status(self, issue_id: int, new_status: IssueStatus | str) -> bool:
        """Move an issue to *new_status* and refresh updated_at.

        Returns False if the issue does not exist. Raises ValueError for an
        unknown status.
        """
        from atask.core import IssueStatus

        status = IssueStatus.parse(new_status)
        with self._write_lock:
            row = self.conn.execute("SELECT status, updated_at FROM issues WHERE id = ?", (issue_id,)).fetchone()
            if row is None:
                return False
            try:
                self.conn.execute(
                    "UPDATE issues SET status = ?, updated_at = ? WHERE id = ?",
                    (status.value, _next_timestamp(row["updated_at"]), issue_id),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        logger.debug("Issue %d status %s -> %s", issue_id, row["status"], status.value)
        return True

    def delete_issue(self, issue_id: int) -> bool:
        """Delete an issue and its label associations. Returns False if it did not exist."""
        with self._write_lock:
            try:
                self.conn.execute("DELETE FROM issue_labels WHERE issue_id = ?", (issue_id,))
                cursor = self.conn.execute("DELETE FROM issues WHERE id = ?", (issue_id,))
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return cursor.rowcount > 0
