"""Data models for repositories and issues read from the tracker."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Repository:
    """A hosted code project inside an organization."""

    name: str
    archived: bool = False
    has_issues: bool = True

    @property
    def is_scannable(self) -> bool:
        """Return True if the repository accepts issues and is not archived."""
        return self.has_issues and not self.archived


@dataclass(frozen=True)
class IssueSnapshot:
    """One open issue as seen at scan time.

    Labels are always a set of label names, whatever shape the tracker
    returned them in.
    """

    number: int
    title: str
    labels: frozenset[str]
    updated_at: datetime  # timezone-aware (UTC)
    url: str
