"""Shared test fixtures for the issue resolver."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

import pytest

from issue_resolver.config.schema import RuleSet
from issue_resolver.models.issue import IssueSnapshot, Repository
from issue_resolver.utils.async_helpers import NotFoundError, RemoteServiceError

# Fixed reference time so staleness never depends on the wall clock
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)

ENV_VARS = (
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "ORGS",
    "STALE_DAYS",
    "RESOLVER_ORGANIZATIONS",
    "RESOLVER_GITHUB__TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of configuration tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def now() -> datetime:
    """Return the fixed reference time."""
    return NOW


@pytest.fixture
def rules() -> RuleSet:
    """Return the default rule set."""
    return RuleSet()


def make_issue(
    number: int = 1,
    title: str = "Something is broken",
    labels: Iterable[str] = (),
    days_old: float = 1,
    now: datetime = NOW,
) -> IssueSnapshot:
    """Build an issue snapshot last updated ``days_old`` days before ``now``."""
    return IssueSnapshot(
        number=number,
        title=title,
        labels=frozenset(labels),
        updated_at=now - timedelta(days=days_old),
        url=f"https://github.com/org/repo/issues/{number}",
    )


@pytest.fixture
def issue_factory() -> Callable[..., IssueSnapshot]:
    """Return the issue snapshot builder."""
    return make_issue


class FakeTracker:
    """In-memory IssueTracker.

    ``repos`` maps an organization to its repositories and ``issues`` maps
    ``(org, repo)`` to open issues. Organizations or repositories listed in
    ``failing`` raise RemoteServiceError; issues in ``gone`` raise
    NotFoundError on comment.
    """

    def __init__(
        self,
        repos: dict[str, list[str]] | None = None,
        issues: dict[tuple[str, str], list[IssueSnapshot]] | None = None,
        failing: Iterable[str | tuple[str, str]] = (),
        gone: Iterable[int] = (),
        failing_closes: Iterable[int] = (),
    ) -> None:
        self.repos = repos or {}
        self.issues = issues or {}
        self.failing = set(failing)
        self.gone = set(gone)
        self.failing_closes = set(failing_closes)
        self.calls: list[tuple] = []

    async def list_repositories(self, org: str) -> list[Repository]:
        self.calls.append(("list_repositories", org))
        if org in self.failing:
            raise RemoteServiceError(f"cannot list {org}", status_code=500)
        return [Repository(name=name) for name in self.repos.get(org, [])]

    async def list_open_issues(self, org: str, repo: str) -> list[IssueSnapshot]:
        self.calls.append(("list_open_issues", org, repo))
        if (org, repo) in self.failing:
            raise RemoteServiceError(f"cannot list {org}/{repo}", status_code=403)
        return list(self.issues.get((org, repo), []))

    async def create_comment(self, org: str, repo: str, issue_number: int, body: str) -> None:
        self.calls.append(("create_comment", org, repo, issue_number, body))
        if issue_number in self.gone:
            raise NotFoundError("gone", status_code=404)

    async def close_issue(
        self,
        org: str,
        repo: str,
        issue_number: int,
        state_reason: str = "not_planned",
    ) -> None:
        self.calls.append(("close_issue", org, repo, issue_number, state_reason))
        if issue_number in self.failing_closes:
            raise RemoteServiceError("close failed", status_code=422)

    async def check_auth(self, timeout: float | None = None) -> bool:
        return True

    @property
    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("create_comment", "close_issue")]


@pytest.fixture
def tracker_factory() -> Callable[..., FakeTracker]:
    """Return the FakeTracker class for building trackers per test."""
    return FakeTracker
