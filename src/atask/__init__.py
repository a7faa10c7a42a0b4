"""atask: Git commit history and local issue tracking in one SQLite store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("atask")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from atask.core import AtaskDB, Commit, Issue, IssuePriority, IssueStatus, Label

__all__ = ["AtaskDB", "Commit", "Issue", "IssuePriority", "IssueStatus", "Label", "__version__"]
