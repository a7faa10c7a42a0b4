"""Core database operations for atask.

Single source of truth for all SQLite operations. Both the CLI and the
dashboard import from this module. Direct SQLite with WAL mode.

Covers commit import, issue CRUD, labels and the issue/label association,
and aggregate stats.

Convention-based discovery: each project has a `.atask/` directory containing
`atask.db` (SQLite) and `config.json`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, nonmember
from pathlib import Path
from typing import Any, ClassVar, TypeVar

from atask.db_base import to_iso
from atask.db_commits import CommitsMixin
from atask.db_issues import IssuesMixin
from atask.db_labels import LabelsMixin
from atask.db_meta import MetaMixin
from atask.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from atask.errors import DataCorruption
from atask.types.core import CommitDict, IssueDict, ISOTimestamp, LabelDict, ProjectConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constrained-string enums
# ---------------------------------------------------------------------------

_E = TypeVar("_E", bound="_TextEnum")


class _TextEnum(str, Enum):
    """Enum whose members map one-to-one onto their stored text.

    Subclasses name their domain in ``noun`` for error messages.
    """

    noun: ClassVar[str]

    @classmethod
    def parse(cls: type[_E], value: str | _E) -> _E:
        """Return the member for *value*; raise ValueError for unknown text."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            msg = f"Invalid {cls.noun} {value!r}. Valid values: {valid}"
            raise ValueError(msg) from None

    @classmethod
    def decode(cls: type[_E], value: str, *, row_id: object = None) -> _E:
        """Decode a persisted value; anything outside the domain is corruption."""
        try:
            return cls(value)
        except ValueError:
            where = f" (row {row_id})" if row_id is not None else ""
            msg = f"Corrupt {cls.noun} {value!r} in store{where}"
            raise DataCorruption(msg) from None

    def __str__(self) -> str:
        return self.value


class IssueStatus(_TextEnum):
    noun = nonmember("status")

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class IssuePriority(_TextEnum):
    noun = nonmember("priority")

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


VALID_STATUSES = frozenset(s.value for s in IssueStatus)
VALID_PRIORITIES = frozenset(p.value for p in IssuePriority)


# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

ATASK_DIR_NAME = ".atask"
DB_FILENAME = "atask.db"
CONFIG_FILENAME = "config.json"


def find_atask_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .atask/ directory.

    Returns the .atask/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / ATASK_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {ATASK_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def read_config(atask_dir: Path) -> ProjectConfig:
    """Read .atask/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(version=1, repo_path=str(atask_dir.parent), default_labels=True)
    config_path = atask_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        loaded = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(loaded, dict):
        logger.warning("Ignoring %s: expected a JSON object", config_path)
        return defaults
    result: ProjectConfig = {**defaults, **loaded}  # type: ignore[typeddict-item]
    return result


def write_config(atask_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .atask/config.json."""
    config_path = atask_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Commit:
    hash: str
    author_name: str
    author_email: str
    commit_date: datetime
    message: str
    files_changed: list[str] = field(default_factory=list)
    insertions: int = 0
    deletions: int = 0
    id: int | None = None

    def to_dict(self) -> CommitDict:
        return {
            "id": self.id,
            "hash": self.hash,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "commit_date": ISOTimestamp(to_iso(self.commit_date)),
            "message": self.message,
            "files_changed": list(self.files_changed),
            "insertions": self.insertions,
            "deletions": self.deletions,
        }


@dataclass
class Label:
    name: str
    color: str = "#808080"
    description: str | None = None
    created_at: str = ""
    id: int | None = None

    def to_dict(self) -> LabelDict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "description": self.description,
            "created_at": ISOTimestamp(self.created_at),
        }


@dataclass
class Issue:
    title: str
    status: IssueStatus = IssueStatus.OPEN
    priority: IssuePriority = IssuePriority.MEDIUM
    description: str | None = None
    assignee: str | None = None
    created_at: str = ""
    updated_at: str = ""
    id: int | None = None
    # Computed (not stored directly)
    labels: list[str] = field(default_factory=list)

    def to_dict(self) -> IssueDict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "assignee": self.assignee,
            "created_at": ISOTimestamp(self.created_at),
            "updated_at": ISOTimestamp(self.updated_at),
            "labels": list(self.labels),
        }


# ---------------------------------------------------------------------------
# AtaskDB: the core
# ---------------------------------------------------------------------------


class AtaskDB(CommitsMixin, IssuesMixin, LabelsMixin, MetaMixin):
    """Direct SQLite operations. Importable by the CLI and the dashboard."""

    def __init__(self, db_path: str | Path, *, check_same_thread: bool = True) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread
        self._write_lock = threading.RLock()

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> AtaskDB:
        """Create an AtaskDB by discovering .atask/ from project_path (or cwd)."""
        atask_dir = find_atask_root(project_path)
        db = cls(atask_dir / DB_FILENAME)
        db.initialize()
        return db

    @classmethod
    def in_memory(cls) -> AtaskDB:
        """An initialized store that lives only as long as the connection."""
        db = cls(":memory:")
        db.initialize()
        return db

    def __enter__(self) -> AtaskDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables and indexes if absent and stamp the schema version.

        Idempotent: every statement is ``IF NOT EXISTS``, so this runs on each
        process start. DDL errors propagate to the caller.
        """
        with self._write_lock:
            self.conn.executescript(SCHEMA_SQL)
            if self.get_schema_version() == 0:
                self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
            self.conn.commit()
        logger.debug("Schema ready at %s (version %d)", self.db_path, CURRENT_SCHEMA_VERSION)

    def ensure_schema(self) -> None:
        self.initialize()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def reconnect(self, *, check_same_thread: bool) -> None:
        """Reopen the connection with a different thread-affinity setting."""
        self.close()
        self._check_same_thread = check_same_thread

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
