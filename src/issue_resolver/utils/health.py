"""Health reporting for the scheduled service.

The service is healthy when its configuration names organizations and a
token, and GitHub accepts that token. The GitHub check is one request
without retries, bounded by ``github.auth_check_timeout``, so a slow API
cannot stall GET /health.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from issue_resolver.config.schema import ResolverConfig
    from issue_resolver.interfaces.vcs import IssueTracker

log = structlog.get_logger()


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthReport:
    """Outcome of the configuration and GitHub checks.

    Attributes:
        config: "ok", or what keeps the configuration from running a scan.
        github: "authenticated", "failed", or "skipped" when the
            configuration is broken or no tracker is available.
    """

    status: HealthStatus
    timestamp: datetime
    config: str
    github: str
    github_latency_ms: float | None = None

    @property
    def healthy(self) -> bool:
        return self.status != HealthStatus.UNHEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": {
                "config": self.config,
                "github": self.github,
                "github_latency_ms": self.github_latency_ms,
            },
        }


class HealthChecker:
    """Checks the resolver configuration and the GitHub credential.

    Example:
        async with GitHubAdapter(config.github) as github:
            report = await HealthChecker(config, github).check()
    """

    def __init__(self, config: ResolverConfig, tracker: IssueTracker | None = None) -> None:
        self._config = config
        self._tracker = tracker

    def config_problem(self) -> str | None:
        """Describe what keeps the configuration from running a scan, if anything."""
        if not self._config.organizations:
            return "No organizations configured"
        token = self._config.github.token
        if token is None or not token.get_secret_value():
            return "GitHub token not configured"
        return None

    async def check(self) -> HealthReport:
        """Check the configuration, then the credential if the configuration is usable.

        Without a tracker the credential is not checked and the report is
        DEGRADED, which still counts as healthy.
        """
        timestamp = datetime.now(UTC)
        problem = self.config_problem()

        if problem is not None:
            report = HealthReport(HealthStatus.UNHEALTHY, timestamp, problem, "skipped")
        elif self._tracker is None:
            report = HealthReport(HealthStatus.DEGRADED, timestamp, "ok", "skipped")
        else:
            start = time.monotonic()
            authenticated = await self._tracker.check_auth(
                timeout=self._config.github.auth_check_timeout
            )
            report = HealthReport(
                HealthStatus.HEALTHY if authenticated else HealthStatus.UNHEALTHY,
                timestamp,
                "ok",
                "authenticated" if authenticated else "failed",
                github_latency_ms=round((time.monotonic() - start) * 1000, 1),
            )

        log.info(
            "health_checked",
            status=report.status.value,
            config=report.config,
            github=report.github,
        )
        return report
