"""Applies close decisions to the issue tracker.

Closing is two sequential calls, a comment then a state change, and they
are not transactional: if the comment lands and the state change fails the
issue stays open with an explanatory comment. That state is logged and
left for the next run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ..models.decision import CloseOutcome
from ..utils.async_helpers import NotFoundError, RemoteServiceError

if TYPE_CHECKING:
    from ..interfaces.vcs import IssueTracker

log = structlog.get_logger()

CLOSE_STATE_REASON = "not_planned"


class ActionExecutor:
    """Posts the explanatory comment and closes the issue.

    Example:
        executor = ActionExecutor(tracker)
        outcome = await executor.close("chittyos", "chittyid", 42, message, dry_run=False)
    """

    def __init__(self, tracker: IssueTracker) -> None:
        self._tracker = tracker

    async def close(
        self,
        org: str,
        repo: str,
        issue_number: int,
        message: str,
        dry_run: bool = True,
    ) -> CloseOutcome:
        """Close one issue.

        Args:
            org: Organization login.
            repo: Repository name.
            issue_number: Issue number.
            message: Comment body explaining the closure.
            dry_run: If True, return immediately without touching the tracker.

        Returns:
            DRY_RUN, CLOSED, or ALREADY_RESOLVED when the tracker answered 404.

        Raises:
            RemoteServiceError: If either call fails with anything but 404.
        """
        if dry_run:
            return CloseOutcome.DRY_RUN

        commented = False
        try:
            await self._tracker.create_comment(org, repo, issue_number, message)
            commented = True
            await self._tracker.close_issue(org, repo, issue_number, CLOSE_STATE_REASON)
        except NotFoundError:
            log.info("issue_already_resolved", org=org, repo=repo, issue=issue_number)
            return CloseOutcome.ALREADY_RESOLVED
        except RemoteServiceError as e:
            event = "issue_close_partial" if commented else "issue_close_failed"
            log.error(
                event,
                org=org,
                repo=repo,
                issue=issue_number,
                status=e.status_code,
                comment_posted=commented,
                error=str(e),
            )
            raise

        log.info("issue_closed", org=org, repo=repo, issue=issue_number)
        return CloseOutcome.CLOSED
