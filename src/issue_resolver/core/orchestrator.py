"""Scan orchestration across organizations, repositories and issues.

This module implements the ScanOrchestrator, which drives one run:
1. List the scannable repositories of each organization
2. List the open issues of each repository
3. Classify each issue and count it
4. Apply close decisions unless running dry
5. Stop the whole run once the issue cap is reached

Traversal is strictly sequential to stay within the tracker's rate limits.
Failures are contained at the narrowest scope: a failed close skips that
issue, a failed issue listing skips that repository, and any error while
processing an organization skips that organization.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from ..adapters.vcs.github import GitHubAdapter
from ..config.loader import require_organizations, require_token
from ..models.decision import CloseOutcome, ScanResult
from ..models.stats import RunStats, ScanReport
from ..utils.async_helpers import RemoteServiceError
from ..utils.logging import bind_context, unbind_context
from ..utils.security import SecurityError
from .classifier import classify
from .executor import ActionExecutor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..config.schema import ResolverConfig, RuleSet
    from ..interfaces.vcs import IssueTracker
    from ..models.issue import IssueSnapshot

log = structlog.get_logger()


class _CapReached(Exception):
    """Internal signal that the run-wide issue cap was hit."""


class ScanOrchestrator:
    """Drives the organization -> repository -> issue traversal.

    The orchestrator holds no per-run state: every call to scan() builds
    its own RunStats and returns it inside the ScanReport, so overlapping
    runs never share counters.

    Example:
        orchestrator = ScanOrchestrator(tracker, config.rules)
        report = await orchestrator.scan(["chittyos"], dry_run=True)
        print(report.stats.to_dict())
    """

    def __init__(
        self,
        tracker: IssueTracker,
        rules: RuleSet,
        executor: ActionExecutor | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            tracker: Issue tracker adapter used for listings.
            rules: Resolution policy shared by every entry point.
            executor: Action executor. Defaults to one bound to ``tracker``.
        """
        self._tracker = tracker
        self._rules = rules
        self._executor = executor or ActionExecutor(tracker)

    @property
    def rules(self) -> RuleSet:
        return self._rules

    async def scan(
        self,
        orgs: Sequence[str],
        dry_run: bool = True,
        now: datetime | None = None,
    ) -> ScanReport:
        """Scan organizations and optionally close matching issues.

        Args:
            orgs: Organization logins, processed in order.
            dry_run: If True, classify only; never call the tracker's write API.
            now: Reference time for staleness. Defaults to the run start time.

        Returns:
            Results gathered so far and the run's stats. When the issue cap
            is reached the report is partial and ``stats.cap_reached`` is set.

        Raises:
            ConfigurationError: If ``orgs`` is empty.
        """
        require_organizations(list(orgs))

        now = now or datetime.now(UTC)
        stats = RunStats()
        results: list[ScanResult] = []

        log.info(
            "scan_started",
            organizations=list(orgs),
            dry_run=dry_run,
            max_issues=self._rules.max_issues_per_run,
        )

        try:
            for org in orgs:
                bind_context(org=org)
                try:
                    await self._scan_organization(org, dry_run, now, stats, results)
                except _CapReached:
                    raise
                except Exception as e:
                    stats.organization_errors += 1
                    log.exception("organization_scan_failed", org=org, error=str(e))
                finally:
                    unbind_context("org")
        except _CapReached:
            stats.cap_reached = True
            log.warning(
                "run_cap_reached",
                scanned=stats.scanned,
                max_issues=self._rules.max_issues_per_run,
            )

        log.info("scan_complete", dry_run=dry_run, **stats.to_dict())
        return ScanReport(results=results, stats=stats, dry_run=dry_run)

    async def _scan_organization(
        self,
        org: str,
        dry_run: bool,
        now: datetime,
        stats: RunStats,
        results: list[ScanResult],
    ) -> None:
        log.info("organization_scan_started", org=org)
        repos = await self._tracker.list_repositories(org)

        for repo in repos:
            try:
                issues = await self._tracker.list_open_issues(org, repo.name)
            except (RemoteServiceError, SecurityError) as e:
                stats.repository_errors += 1
                log.error(
                    "repository_scan_failed",
                    org=org,
                    repo=repo.name,
                    status=getattr(e, "status_code", None),
                    error=str(e),
                )
                continue

            for issue in issues:
                result = await self._process_issue(org, repo.name, issue, dry_run, now, stats)
                results.append(result)
                if stats.scanned >= self._rules.max_issues_per_run:
                    raise _CapReached

    async def _process_issue(
        self,
        org: str,
        repo: str,
        issue: IssueSnapshot,
        dry_run: bool,
        now: datetime,
        stats: RunStats,
    ) -> ScanResult:
        decision = classify(issue, self._rules, now)
        stats.record(decision)
        log.debug(
            "issue_classified",
            repo=repo,
            issue=issue.number,
            action=decision.action.value,
            reason=decision.reason.value,
        )

        outcome: CloseOutcome | None = None
        if decision.should_close and not dry_run:
            try:
                outcome = await self._executor.close(
                    org, repo, issue.number, decision.message or "", dry_run=False
                )
            except RemoteServiceError:
                outcome = CloseOutcome.FAILED
                stats.failed += 1
            except SecurityError as e:
                log.error("issue_close_failed", repo=repo, issue=issue.number, error=str(e))
                outcome = CloseOutcome.FAILED
                stats.failed += 1
            else:
                if outcome == CloseOutcome.CLOSED:
                    stats.closed += 1
                elif outcome == CloseOutcome.ALREADY_RESOLVED:
                    stats.already_resolved += 1
        elif decision.should_close:
            outcome = CloseOutcome.DRY_RUN

        return ScanResult(
            org=org,
            repo=repo,
            issue=issue.number,
            title=issue.title,
            url=issue.url,
            decision=decision,
            outcome=outcome,
        )


async def run_scan(
    config: ResolverConfig,
    orgs: Sequence[str] | None = None,
    dry_run: bool = True,
) -> ScanReport:
    """Run one scan against GitHub with the given configuration.

    Both entry points use this: the command line and the scheduled service.

    Args:
        config: Loaded configuration.
        orgs: Organizations to scan. Defaults to ``config.organizations``.
        dry_run: If True, classify only.

    Raises:
        ConfigurationError: If the token is missing or there is nothing to scan.
    """
    require_token(config)
    orgs = require_organizations(list(orgs if orgs is not None else config.organizations))

    async with GitHubAdapter(config.github, config.retry) as github:
        orchestrator = ScanOrchestrator(github, config.rules)
        return await orchestrator.scan(orgs, dry_run=dry_run)
