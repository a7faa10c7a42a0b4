"""Exception taxonomy for atask.

Plain lookups return ``None`` for a missing row; these exceptions cover the
cases where a caller must be told something went wrong.
"""

from __future__ import annotations


class AtaskError(Exception):
    """Base class for all atask errors."""


class NotFoundError(AtaskError, KeyError):
    """A referenced entity does not exist."""

    def __str__(self) -> str:
        # KeyError.__str__ quotes the message; keep it readable.
        return str(self.args[0]) if self.args else ""


class ConstraintViolation(AtaskError, ValueError):
    """A write would break a uniqueness constraint (duplicate hash or label name)."""


class RepositoryError(AtaskError):
    """The given path is not a readable Git repository."""


class ParseError(AtaskError, ValueError):
    """A timestamp or persisted value could not be decoded."""


class DataCorruption(ParseError):
    """A persisted enum-like value is outside its known domain."""
