"""GitHub issue tracker adapter using the REST API.

This module implements the IssueTracker protocol for GitHub on top of an
httpx.AsyncClient. Listings are paged at a fixed page size until the
service returns an empty (or short) page. Every request is wrapped in the
configured retry policy; rate limiting, 5xx responses and network errors
are retried with exponential backoff (or after the service's Retry-After,
capped at the maximum delay), everything else is mapped onto the
RemoteServiceError hierarchy and raised to the caller.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ..._version import __version__
from ...config.schema import GitHubConfig, RetryConfig
from ...models.issue import IssueSnapshot, Repository
from ...utils.async_helpers import (
    NotFoundError,
    RateLimitError,
    RemoteServiceError,
    ServerError,
    create_retry,
)
from ...utils.logging import register_secret
from ...utils.security import ValidationError, validate_org_name, validate_repo_name

if TYPE_CHECKING:
    from collections.abc import Mapping

log = structlog.get_logger()

GITHUB_API_VERSION = "2022-11-28"


class GitHubAdapter:
    """GitHub issue tracker adapter implementing the IssueTracker protocol.

    Example:
        async with GitHubAdapter(config.github, config.retry) as github:
            repos = await github.list_repositories("chittyos")
            issues = await github.list_open_issues("chittyos", repos[0].name)
    """

    def __init__(
        self,
        config: GitHubConfig,
        retry: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub adapter.

        Args:
            config: GitHub-specific configuration.
            retry: Retry policy for transient failures. Defaults to RetryConfig().
            transport: Optional httpx transport, used to fake the API in tests.
        """
        self._config = config
        retry = retry or RetryConfig()

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": f"issue-resolver/{__version__}",
        }
        if config.token is not None:
            token = config.token.get_secret_value()
            register_secret(token)
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )
        self._retry = create_retry(
            max_attempts=retry.max_attempts,
            min_wait=retry.initial_delay,
            max_wait=retry.max_delay,
            exponential_base=retry.exponential_base,
        )

    async def __aenter__(self) -> GitHubAdapter:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        retrying: bool = True,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send a request under the retry policy and check its status.

        Transport failures that outlive the retry policy are raised as
        RemoteServiceError so callers handle a single error family.
        ``retrying=False`` makes a single attempt, and ``timeout`` overrides
        the client timeout for this request.
        """
        context = context or {}
        send = self._retry(self._send) if retrying else self._send
        try:
            return await send(
                method, path, params=params, json=json, context=context, timeout=timeout
            )
        except httpx.TransportError as e:
            log.error("remote_request_failed", error=str(e), path=path, **context)
            raise RemoteServiceError(
                f"GitHub API request {method} {path} failed: {e}", context=context
            ) from e

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None,
        json: Mapping[str, Any] | None,
        context: dict[str, Any],
        timeout: float | None = None,
    ) -> httpx.Response:
        extra: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        response = await self._client.request(method, path, params=params, json=json, **extra)
        self._raise_for_status(response, context)
        return response

    def _raise_for_status(self, response: httpx.Response, context: dict[str, Any]) -> None:
        """Map a non-success response onto the RemoteServiceError hierarchy."""
        if response.is_success:
            return

        status = response.status_code
        request = response.request
        message = f"GitHub API error {status} on {request.method} {request.url.path}"
        detail = _error_detail(response)
        if detail:
            message = f"{message}: {detail}"

        if status == 404:
            raise NotFoundError(message, status_code=status, context=context)

        # Secondary limits answer 403 with Retry-After while quota remains
        throttled = (
            response.headers.get("x-ratelimit-remaining") == "0"
            or "retry-after" in response.headers
        )
        if status == 429 or (status == 403 and throttled):
            retry_after = _retry_after(response)
            log.warning("rate_limit_hit", status=status, retry_after=retry_after, **context)
            raise RateLimitError(
                message, retry_after=retry_after, status_code=status, context=context
            )

        if status >= 500:
            raise ServerError(message, status_code=status, context=context)

        log.error("remote_request_failed", status=status, detail=detail, **context)
        raise RemoteServiceError(message, status_code=status, context=context)

    async def _paginate(
        self,
        path: str,
        params: Mapping[str, Any],
        context: dict[str, Any],
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield raw pages until an empty or short page is returned.

        Page length is measured before any filtering; the total-count
        headers of the service are never consulted.
        """
        per_page = self._config.per_page
        page = 1
        while True:
            response = await self._request(
                "GET",
                path,
                params={**params, "per_page": per_page, "page": page},
                context={**context, "page": page},
            )
            data = response.json()
            if not isinstance(data, list):
                raise RemoteServiceError(
                    f"Unexpected payload from {path}: expected a list",
                    status_code=response.status_code,
                    context=context,
                )
            if not data:
                return
            yield data
            if len(data) < per_page:
                return
            page += 1

    # ------------------------------------------------------------------
    # Enumerators
    # ------------------------------------------------------------------

    async def list_repositories(self, org: str) -> list[Repository]:
        """List the non-archived repositories of an organization that accept issues.

        Args:
            org: Organization login.

        Returns:
            Scannable repositories in listing order.

        Raises:
            ValidationError: If the organization name is malformed.
            NotFoundError: If the organization does not exist.
            RemoteServiceError: If the listing request fails.
        """
        if not validate_org_name(org):
            raise ValidationError(f"Invalid organization name: {org}")

        repos: list[Repository] = []
        skipped = 0
        async for page in self._paginate(f"/orgs/{org}/repos", {"type": "all"}, {"org": org}):
            for data in page:
                repo = _parse_repository(data)
                if repo.is_scannable:
                    repos.append(repo)
                else:
                    skipped += 1

        log.info("repositories_listed", org=org, count=len(repos), skipped=skipped)
        return repos

    async def list_open_issues(self, org: str, repo: str) -> list[IssueSnapshot]:
        """List the open issues of a repository, excluding pull requests.

        Args:
            org: Organization login.
            repo: Repository name.

        Returns:
            Normalized issue snapshots.

        Raises:
            ValidationError: If a name is malformed.
            RemoteServiceError: If the listing request fails.
        """
        self._validate_target(org, repo)

        issues: list[IssueSnapshot] = []
        pull_requests = 0
        async for page in self._paginate(
            f"/repos/{org}/{repo}/issues",
            {"state": "open"},
            {"org": org, "repo": repo},
        ):
            for data in page:
                # Pull requests come back from the issues endpoint with this marker
                if "pull_request" in data:
                    pull_requests += 1
                    continue
                issues.append(_parse_issue(data))

        log.debug(
            "issues_listed",
            org=org,
            repo=repo,
            count=len(issues),
            pull_requests_skipped=pull_requests,
        )
        return issues

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_comment(self, org: str, repo: str, issue_number: int, body: str) -> None:
        """Post a comment on an issue."""
        self._validate_target(org, repo)
        await self._request(
            "POST",
            f"/repos/{org}/{repo}/issues/{issue_number}/comments",
            json={"body": body},
            context={"org": org, "repo": repo, "issue": issue_number},
        )

    async def close_issue(
        self,
        org: str,
        repo: str,
        issue_number: int,
        state_reason: str = "not_planned",
    ) -> None:
        """Close an issue with a machine-readable resolution reason."""
        self._validate_target(org, repo)
        await self._request(
            "PATCH",
            f"/repos/{org}/{repo}/issues/{issue_number}",
            json={"state": "closed", "state_reason": state_reason},
            context={"org": org, "repo": repo, "issue": issue_number},
        )

    async def check_auth(self, timeout: float | None = None) -> bool:
        """Return True if the API accepts the configured credential.

        This is a single attempt without retries. An unreachable API reports
        False like a rejected token does.

        Args:
            timeout: Seconds to wait for the response instead of the client timeout.
        """
        try:
            await self._request(
                "GET",
                "/rate_limit",
                context={"operation": "check_auth"},
                retrying=False,
                timeout=timeout,
            )
        except RemoteServiceError as e:
            log.warning("github_auth_check_failed", status=e.status_code, error=str(e))
            return False
        return True

    def _validate_target(self, org: str, repo: str) -> None:
        if not validate_org_name(org):
            raise ValidationError(f"Invalid organization name: {org}")
        if not validate_repo_name(repo):
            raise ValidationError(f"Invalid repository name: {repo}")


def _parse_repository(data: dict[str, Any]) -> Repository:
    """Parse a repository record from the listing endpoint."""
    return Repository(
        name=data.get("name", ""),
        archived=bool(data.get("archived", False)),
        has_issues=bool(data.get("has_issues", True)),
    )


def _parse_issue(data: dict[str, Any]) -> IssueSnapshot:
    """Parse an issue record into a snapshot.

    Labels may be plain names or label objects; both become a set of names.
    """
    labels_data = data.get("labels") or []
    labels = frozenset(
        name
        for name in (
            label.get("name", "") if isinstance(label, dict) else str(label)
            for label in labels_data
        )
        if name
    )

    return IssueSnapshot(
        number=int(data.get("number", 0)),
        title=data.get("title") or "",
        labels=labels,
        updated_at=parse_timestamp(data.get("updated_at", "")),
        url=data.get("html_url", ""),
    )


def parse_timestamp(timestamp_str: str) -> datetime:
    """Parse an ISO 8601 timestamp from the GitHub API as an aware UTC datetime.

    A missing or malformed timestamp is read as "now", which keeps the
    issue from being considered stale.
    """
    if not timestamp_str:
        return datetime.now(UTC)

    try:
        # GitHub uses ISO 8601 format with Z suffix
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        parsed = datetime.fromisoformat(timestamp_str)
    except ValueError:
        log.warning("invalid_timestamp", value=timestamp_str)
        return datetime.now(UTC)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _error_detail(response: httpx.Response) -> str:
    """Extract the API's error message, falling back to the raw body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("message", ""))
    return ""


def _retry_after(response: httpx.Response) -> int | None:
    """Seconds to wait before retrying, from Retry-After or x-ratelimit-reset."""
    retry_after = response.headers.get("retry-after")
    if retry_after and retry_after.isdigit():
        return int(retry_after)

    reset = response.headers.get("x-ratelimit-reset")
    if reset and reset.isdigit():
        return max(0, int(reset) - int(time.time()))
    return None
