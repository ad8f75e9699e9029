"""Data models and transfer objects."""

from .decision import (
    CLOSE_REASONS,
    Action,
    CloseOutcome,
    Decision,
    Reason,
    ScanResult,
)
from .issue import IssueSnapshot, Repository
from .stats import RunStats, ScanReport

__all__ = [
    # Tracker models
    "Repository",
    "IssueSnapshot",
    # Decision models
    "Action",
    "Reason",
    "CLOSE_REASONS",
    "CloseOutcome",
    "Decision",
    "ScanResult",
    # Run models
    "RunStats",
    "ScanReport",
]
