"""Shared validation functions for all entry points.

Pure functions: no FastAPI or Click dependencies.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_MAX_NAME_LENGTH = 128
_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def normalize_color(value: str) -> str:
    """Return *value* as ``#rrggbb`` (lowercase), accepting it with or without ``#``.

    Raises ValueError for anything that is not six hex digits.
    """
    match = _HEX_COLOR.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        msg = f"Invalid color {value!r}: expected 6 hex digits, e.g. 'd73a4a' or '#d73a4a'"
        raise ValueError(msg)
    return f"#{match.group(1).lower()}"


def validate_title(value: Any) -> str:
    """Return the title unchanged if it has visible content, else raise ValueError."""
    if not isinstance(value, str) or not value.strip():
        msg = "Title cannot be empty"
        raise ValueError(msg)
    return value


def sanitize_name(value: Any, *, kind: str = "name") -> tuple[str, str | None]:
    """Validate and clean a label name or assignee.

    Returns (cleaned, None) on success or ("", error_message) on failure.
    Strips whitespace, then checks: non-empty, max length, no control/format chars.
    """
    if not isinstance(value, str):
        return ("", f"{kind} must be a string")
    # Check for control/format chars before stripping: reject "\nbad" rather
    # than silently absorbing the newline via strip().
    for ch in value:
        if unicodedata.category(ch).startswith("C"):
            return ("", f"{kind} must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", f"{kind} must not be empty")
    if len(cleaned) > _MAX_NAME_LENGTH:
        return ("", f"{kind} must be at most {_MAX_NAME_LENGTH} characters")
    return (cleaned, None)
