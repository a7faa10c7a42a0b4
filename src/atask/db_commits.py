"""CommitsMixin: commit CRUD and incremental import from Git history.

All methods access ``self.conn`` and ``self._write_lock`` via Python's MRO
when composed into ``AtaskDB``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from time import perf_counter
from typing import TYPE_CHECKING

from atask.db_base import DBMixinProtocol, _now_iso, parse_timestamp, to_iso
from atask.errors import ConstraintViolation, ParseError

if TYPE_CHECKING:
    from atask.core import Commit
    from atask.gitlog import CommitRecord

logger = logging.getLogger(__name__)

_COMMIT_COLUMNS = "id, hash, author_name, author_email, commit_date, message, files_changed, insertions, deletions"


class CommitsMixin(DBMixinProtocol):
    """Append-only commit history.

    Commits are written by the import path and never updated or deleted.
    """

    # -- Writes --------------------------------------------------------------

    def _insert_commit_row(self, commit: Commit | CommitRecord) -> int:
        """INSERT without committing. Caller owns the transaction."""
        if commit.insertions < 0 or commit.deletions < 0:
            msg = f"Commit {commit.hash}: insertions/deletions must be non-negative"
            raise ValueError(msg)
        if not commit.hash:
            msg = "Commit hash cannot be empty"
            raise ValueError(msg)
        try:
            cursor = self.conn.execute(
                "INSERT INTO commits (hash, author_name, author_email, commit_date, message, "
                "files_changed, insertions, deletions, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    commit.hash,
                    commit.author_name,
                    commit.author_email,
                    to_iso(commit.commit_date),
                    commit.message,
                    json.dumps(list(commit.files_changed)),
                    commit.insertions,
                    commit.deletions,
                    _now_iso(),
                ),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc):
                msg = f"Commit already exists: {commit.hash}"
                raise ConstraintViolation(msg) from exc
            raise
        rowid = cursor.lastrowid
        if rowid is None:  # pragma: no cover (INSERT always sets lastrowid)
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return rowid

    def insert_commit(self, commit: Commit | CommitRecord) -> int:
        """Insert one commit and return its id.

        Raises ConstraintViolation if the hash is already stored.
        """
        with self._write_lock:
            try:
                rowid = self._insert_commit_row(commit)
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return rowid

    # -- Reads ---------------------------------------------------------------

    def _build_commit(self, row: sqlite3.Row) -> Commit:
        from atask.core import Commit

        try:
            files = json.loads(row["files_changed"]) if row["files_changed"] else []
        except json.JSONDecodeError as exc:
            msg = f"Corrupt files_changed for commit {row['hash']}: {exc}"
            raise ParseError(msg) from exc
        if not isinstance(files, list):
            msg = f"Corrupt files_changed for commit {row['hash']}: expected a JSON array"
            raise ParseError(msg)
        return Commit(
            id=row["id"],
            hash=row["hash"],
            author_name=row["author_name"],
            author_email=row["author_email"],
            commit_date=parse_timestamp(row["commit_date"]),
            message=row["message"],
            files_changed=[str(f) for f in files],
            insertions=row["insertions"],
            deletions=row["deletions"],
        )

    def get_commit_by_hash(self, commit_hash: str) -> Commit | None:
        row = self.conn.execute(f"SELECT {_COMMIT_COLUMNS} FROM commits WHERE hash = ?", (commit_hash,)).fetchone()
        return self._build_commit(row) if row is not None else None

    def get_commit(self, commit_id: int) -> Commit | None:
        row = self.conn.execute(f"SELECT {_COMMIT_COLUMNS} FROM commits WHERE id = ?", (commit_id,)).fetchone()
        return self._build_commit(row) if row is not None else None

    def get_all_commits(self, *, limit: int | None = None) -> list[Commit]:
        """All commits, newest commit_date first."""
        sql = f"SELECT {_COMMIT_COLUMNS} FROM commits ORDER BY commit_date DESC, id DESC"
        params: tuple[int, ...] = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        return [self._build_commit(r) for r in self.conn.execute(sql, params).fetchall()]

    def _commit_exists(self, commit_hash: str) -> bool:
        return self.conn.execute("SELECT 1 FROM commits WHERE hash = ?", (commit_hash,)).fetchone() is not None

    # -- Import --------------------------------------------------------------

    def populate_from_git_history(self, repo_path: str | Path | None = None) -> int:
        """Import commits reachable from HEAD that are not stored yet.

        Defaults to the repository containing the current working directory.
        Returns the number of commits actually inserted (0 on a re-run against
        an unchanged repository). The whole import is one transaction: any
        failure rolls back every row inserted by this call and propagates.
        """
        from atask.gitlog import read_commits

        path = Path(repo_path) if repo_path is not None else Path.cwd()
        started = perf_counter()
        inserted = 0
        seen = 0

        with self._write_lock:
            try:
                for record in read_commits(path):
                    seen += 1
                    if self._commit_exists(record.hash):
                        continue
                    try:
                        self._insert_commit_row(record)
                    except ConstraintViolation:
                        # Lost a race with another writer; the row is there.
                        logger.debug("Commit %s inserted concurrently, skipping", record.hash)
                        continue
                    except ValueError as exc:
                        msg = f"Commit {record.hash}: {exc}"
                        raise ParseError(msg) from exc
                    inserted += 1
                self.conn.commit()
            except ParseError as exc:
                self.conn.rollback()
                logger.error("Import from %s aborted after %d commit(s); rolled back", path, seen, exc_info=True)
                msg = f"Failed to import from {path}: {exc}"
                raise ParseError(msg) from exc
            except BaseException:
                self.conn.rollback()
                logger.error("Import from %s aborted after %d commit(s); rolled back", path, seen, exc_info=True)
                raise

        logger.info(
            "Imported %d new commit(s) from %s (%d seen)",
            inserted,
            path,
            seen,
            extra={"command": "import", "duration_ms": round((perf_counter() - started) * 1000, 2)},
        )
        return inserted
