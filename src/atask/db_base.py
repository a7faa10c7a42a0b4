"""Shared utilities, timestamp handling, and Protocol for DB mixins."""

from __future__ import annotations

import re
import sqlite3
import threading
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from atask.errors import ParseError

_GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"
# Git "raw" date: seconds since the epoch followed by a +HHMM/-HHMM offset.
_EPOCH_WITH_OFFSET = re.compile(r"^(-?\d+)(?:\s+([+-])(\d{2})(\d{2}))?$")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds")


def to_iso(value: datetime) -> str:
    """Render an aware datetime as the canonical stored form (UTC, microseconds)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_timestamp(value: str | int | float) -> datetime:
    """Parse a stored or Git-produced timestamp into an aware UTC datetime.

    Accepted forms:
    - RFC 3339 / ISO 8601 (``2024-05-01T10:00:00+02:00``, trailing ``Z`` allowed)
    - Git ISO-like (``2024-05-01 10:00:00 +0200``)
    - SQLite ``CURRENT_TIMESTAMP`` (``2024-05-01 10:00:00``, taken as UTC)
    - Unix epoch, optionally with an offset (``1714550400 +0200``)

    Raises ParseError for anything else.
    """
    if isinstance(value, bool):
        msg = f"Invalid timestamp: {value!r}"
        raise ParseError(msg)
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=UTC)
    if not isinstance(value, str) or not value.strip():
        msg = f"Invalid timestamp: {value!r}"
        raise ParseError(msg)

    text = value.strip()
    epoch = _EPOCH_WITH_OFFSET.match(text)
    if epoch:
        seconds, sign, hours, minutes = epoch.groups()
        offset = timedelta(0)
        if sign:
            offset = timedelta(hours=int(hours), minutes=int(minutes))
            if sign == "-":
                offset = -offset
        return datetime.fromtimestamp(int(seconds), tz=timezone(offset)).astimezone(UTC)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, _GIT_DATE_FORMAT)
        except ValueError:
            msg = f"Invalid timestamp: {value!r}"
            raise ParseError(msg) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _next_timestamp(previous: str) -> str:
    """Return now, bumped past *previous* so successive mutations strictly increase."""
    now = datetime.now(UTC)
    floor = parse_timestamp(previous) + timedelta(microseconds=1)
    return to_iso(max(now, floor))


class DBMixinProtocol(Protocol):
    """Shared attributes that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check ``self.conn`` and the
    write lock. Actual implementations are provided by AtaskDB at composition time.
    """

    db_path: Path
    _conn: sqlite3.Connection | None
    _write_lock: threading.RLock

    @property
    def conn(self) -> sqlite3.Connection: ...
