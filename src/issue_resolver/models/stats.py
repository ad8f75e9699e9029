"""Run-scoped counters and the report returned by a scan."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from .decision import Action, Decision, Reason, ScanResult


@dataclass
class RunStats:
    """Aggregate counters for a single run.

    A fresh instance is created by every scan and handed back to the
    caller; it is never shared between runs.
    """

    scanned: int = 0
    closed: int = 0
    failed: int = 0
    already_resolved: int = 0
    organization_errors: int = 0
    repository_errors: int = 0
    cap_reached: bool = False
    by_reason: Counter[Reason] = field(default_factory=Counter)

    def record(self, decision: Decision) -> None:
        """Count one examined issue and the reason it was classified with."""
        self.scanned += 1
        self.by_reason[decision.reason] += 1

    def count(self, reason: Reason) -> int:
        return self.by_reason[reason]

    @property
    def would_close(self) -> int:
        """Number of issues classified for closure, applied or not."""
        return sum(
            count
            for reason, count in self.by_reason.items()
            if reason not in (Reason.PROTECTED, Reason.ACTIVE)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "scanned": self.scanned,
            "closed": self.closed,
            "failed": self.failed,
            "already_resolved": self.already_resolved,
            "by_reason": {reason.value: self.by_reason[reason] for reason in Reason},
            "organization_errors": self.organization_errors,
            "repository_errors": self.repository_errors,
            "cap_reached": self.cap_reached,
        }


@dataclass
class ScanReport:
    """Results and stats of one scan invocation."""

    results: list[ScanResult]
    stats: RunStats
    dry_run: bool = True

    def by_action(self, action: Action) -> list[ScanResult]:
        return [r for r in self.results if r.decision.action == action]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "dry_run": self.dry_run,
            "results": [r.to_dict() for r in self.results],
            "stats": self.stats.to_dict(),
        }
