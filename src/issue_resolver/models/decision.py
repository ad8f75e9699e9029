"""Classification decisions and per-issue scan results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Action(StrEnum):
    """What the resolver should do with an issue."""

    CLOSE = "close"
    KEEP = "keep"
    SKIP = "skip"


class Reason(StrEnum):
    """Why a decision was taken."""

    PROTECTED = "protected"
    LABELED = "labeled"
    BOT_CLEANUP = "botCleanup"
    RESOLVED = "resolved"
    STALE = "stale"
    ACTIVE = "active"


# Reasons that lead to closing an issue
CLOSE_REASONS = frozenset({Reason.LABELED, Reason.BOT_CLEANUP, Reason.RESOLVED, Reason.STALE})


class CloseOutcome(StrEnum):
    """Result of applying a close decision."""

    DRY_RUN = "dry_run"
    CLOSED = "closed"
    ALREADY_RESOLVED = "already_resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class Decision:
    """Classifier output for one issue."""

    action: Action
    reason: Reason
    message: str | None = None

    @property
    def should_close(self) -> bool:
        return self.action == Action.CLOSE


@dataclass(frozen=True)
class ScanResult:
    """One examined issue together with its decision."""

    org: str
    repo: str
    issue: int
    title: str
    url: str
    decision: Decision
    outcome: CloseOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        analysis: dict[str, Any] = {
            "action": self.decision.action.value,
            "reason": self.decision.reason.value,
        }
        if self.decision.message is not None:
            analysis["message"] = self.decision.message
        return {
            "org": self.org,
            "repo": self.repo,
            "issue": self.issue,
            "title": self.title,
            "url": self.url,
            "analysis": analysis,
            "outcome": self.outcome.value if self.outcome else None,
        }
