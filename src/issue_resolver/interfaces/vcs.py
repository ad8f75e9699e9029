"""Abstract interface for issue tracker integrations."""

from typing import Protocol

from ..models.issue import IssueSnapshot, Repository


class IssueTracker(Protocol):
    """Abstract interface for the issue tracking service.

    This protocol defines the operations the scan engine consumes. Adapters
    (GitHub today) translate them into remote calls and map failures onto
    the RemoteServiceError hierarchy.
    """

    async def list_repositories(self, org: str) -> list[Repository]:
        """
        List the scannable repositories of an organization.

        Archived repositories and repositories with issues disabled are
        excluded.

        Args:
            org: Organization login

        Returns:
            Repositories in listing order

        Raises:
            NotFoundError: If the organization does not exist
            RemoteServiceError: If the listing request fails
        """
        ...

    async def list_open_issues(self, org: str, repo: str) -> list[IssueSnapshot]:
        """
        List the open issues of a repository, pull requests excluded.

        Args:
            org: Organization login
            repo: Repository name

        Returns:
            Normalized issue snapshots

        Raises:
            RemoteServiceError: If the listing request fails
        """
        ...

    async def create_comment(self, org: str, repo: str, issue_number: int, body: str) -> None:
        """
        Post a comment on an issue.

        Raises:
            NotFoundError: If the issue no longer exists
            RemoteServiceError: If the request fails
        """
        ...

    async def close_issue(
        self,
        org: str,
        repo: str,
        issue_number: int,
        state_reason: str = "not_planned",
    ) -> None:
        """
        Transition an issue to closed with a resolution reason.

        Raises:
            NotFoundError: If the issue no longer exists
            RemoteServiceError: If the request fails
        """
        ...

    async def check_auth(self, timeout: float | None = None) -> bool:
        """
        Return True if the configured credential is accepted.

        Makes one attempt, waiting at most ``timeout`` seconds when given.
        """
        ...
