"""LabelsMixin: label CRUD, the default label catalog, and issue/label association.

All methods access ``self.conn`` and ``self._write_lock`` via Python's MRO
when composed into ``AtaskDB``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from atask.db_base import DBMixinProtocol, _now_iso
from atask.errors import ConstraintViolation, NotFoundError
from atask.validation import normalize_color, sanitize_name

if TYPE_CHECKING:
    from atask.core import Label

logger = logging.getLogger(__name__)

DEFAULT_LABEL_COLOR = "#808080"

# (name, color, description); read-only starter catalog.
DEFAULT_LABELS: tuple[tuple[str, str, str], ...] = (
    ("bug", "#d73a4a", "Something isn't working"),
    ("enhancement", "#a2eeef", "New feature or request"),
    ("documentation", "#0075ca", "Improvements or additions to documentation"),
    ("good first issue", "#7057ff", "Good for newcomers"),
    ("help wanted", "#008672", "Extra attention is needed"),
    ("invalid", "#e4e669", "This doesn't seem right"),
    ("question", "#d876e3", "Further information is requested"),
    ("wontfix", "#ffffff", "This will not be worked on"),
)

_LABEL_COLUMNS = "id, name, color, description, created_at"


class LabelsMixin(DBMixinProtocol):
    """Labels are append-only: created on demand or by the seeder, never updated."""

    def _validate_label_name(self, name: str) -> str:
        cleaned, err = sanitize_name(name, kind="Label name")
        if err:
            raise ValueError(err)
        return cleaned

    # -- Label CRUD ----------------------------------------------------------

    def insert_label(self, name: str, *, color: str = DEFAULT_LABEL_COLOR, description: str | None = None) -> int:
        """Create a label and return its id. Raises ConstraintViolation on a duplicate name."""
        name = self._validate_label_name(name)
        color = normalize_color(color)
        with self._write_lock:
            try:
                cursor = self.conn.execute(
                    "INSERT INTO labels (name, color, description, created_at) VALUES (?, ?, ?, ?)",
                    (name, color, description, _now_iso()),
                )
                self.conn.commit()
            except sqlite3.IntegrityError as exc:
                self.conn.rollback()
                msg = f"Label already exists: {name}"
                raise ConstraintViolation(msg) from exc
        rowid = cursor.lastrowid
        if rowid is None:  # pragma: no cover (INSERT always sets lastrowid)
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return rowid

    def _build_label(self, row: sqlite3.Row) -> Label:
        from atask.core import Label

        return Label(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            description=row["description"],
            created_at=row["created_at"],
        )

    def get_label_by_name(self, name: str) -> Label | None:
        row = self.conn.execute(f"SELECT {_LABEL_COLUMNS} FROM labels WHERE name = ?", (name,)).fetchone()
        return self._build_label(row) if row is not None else None

    def get_label(self, label_id: int) -> Label | None:
        row = self.conn.execute(f"SELECT {_LABEL_COLUMNS} FROM labels WHERE id = ?", (label_id,)).fetchone()
        return self._build_label(row) if row is not None else None

    def get_all_labels(self) -> list[Label]:
        rows = self.conn.execute(f"SELECT {_LABEL_COLUMNS} FROM labels ORDER BY name").fetchall()
        return [self._build_label(r) for r in rows]

    # -- Seeder --------------------------------------------------------------

    def create_default_labels(self) -> int:
        """Ensure every label in DEFAULT_LABELS exists. Returns how many were created.

        Names that already exist are left untouched, so repeated or concurrent
        runs converge on exactly one row per default label.
        """
        created = 0
        with self._write_lock:
            try:
                now = _now_iso()
                for name, color, description in DEFAULT_LABELS:
                    cursor = self.conn.execute(
                        "INSERT OR IGNORE INTO labels (name, color, description, created_at) VALUES (?, ?, ?, ?)",
                        (name, color, description, now),
                    )
                    if cursor.rowcount > 0:
                        created += 1
                        logger.debug("Seeded label: %s", name)
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        if created:
            logger.info("Created %d default label(s)", created)
        return created

    # -- Association ---------------------------------------------------------

    def _require_issue_and_label(self, issue_id: int, label_id: int) -> None:
        if self.conn.execute("SELECT 1 FROM issues WHERE id = ?", (issue_id,)).fetchone() is None:
            msg = f"Issue not found: {issue_id}"
            raise NotFoundError(msg)
        if self.conn.execute("SELECT 1 FROM labels WHERE id = ?", (label_id,)).fetchone() is None:
            msg = f"Label not found: {label_id}"
            raise NotFoundError(msg)

    def attach_label(self, issue_id: int, label_id: int) -> bool:
        """Associate a label with an issue. Returns False if the pair already existed."""
        with self._write_lock:
            self._require_issue_and_label(issue_id, label_id)
            cursor = self.conn.execute(
                "INSERT OR IGNORE INTO issue_labels (issue_id, label_id) VALUES (?, ?)",
                (issue_id, label_id),
            )
            self.conn.commit()
        return cursor.rowcount > 0

    def attach_label_by_name(self, issue_id: int, name: str) -> bool:
        label = self.get_label_by_name(name)
        if label is None or label.id is None:
            msg = f"Label not found: {name}"
            raise NotFoundError(msg)
        return self.attach_label(issue_id, label.id)

    def detach_label(self, issue_id: int, label_id: int) -> bool:
        with self._write_lock:
            cursor = self.conn.execute(
                "DELETE FROM issue_labels WHERE issue_id = ? AND label_id = ?",
                (issue_id, label_id),
            )
            self.conn.commit()
        return cursor.rowcount > 0

    def list_labels_for_issue(self, issue_id: int) -> list[Label]:
        rows = self.conn.execute(
            "SELECT l.id, l.name, l.color, l.description, l.created_at FROM labels l "
            "JOIN issue_labels il ON l.id = il.label_id "
            "WHERE il.issue_id = ? ORDER BY l.name",
            (issue_id,),
        ).fetchall()
        return [self._build_label(r) for r in rows]
