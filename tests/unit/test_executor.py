"""Tests for the action executor."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from issue_resolver.core.executor import ActionExecutor
from issue_resolver.models.decision import CloseOutcome
from issue_resolver.utils.async_helpers import NotFoundError, RemoteServiceError, ServerError


@pytest.fixture
def tracker() -> MagicMock:
    """Create a tracker mock with async write methods."""
    tracker = MagicMock()
    tracker.create_comment = AsyncMock()
    tracker.close_issue = AsyncMock()
    return tracker


class TestActionExecutor:
    """Test closing issues."""

    async def test_dry_run_makes_no_calls(self, tracker: MagicMock) -> None:
        """Dry run returns immediately."""
        executor = ActionExecutor(tracker)
        outcome = await executor.close("org", "repo", 1, "msg", dry_run=True)

        assert outcome == CloseOutcome.DRY_RUN
        tracker.create_comment.assert_not_called()
        tracker.close_issue.assert_not_called()

    async def test_dry_run_is_default(self, tracker: MagicMock) -> None:
        """Closing requires an explicit dry_run=False."""
        outcome = await ActionExecutor(tracker).close("org", "repo", 1, "msg")
        assert outcome == CloseOutcome.DRY_RUN
        tracker.create_comment.assert_not_called()

    async def test_comment_then_close(self, tracker: MagicMock) -> None:
        """The comment is posted before the state change."""
        order: list[str] = []
        tracker.create_comment.side_effect = lambda *a, **k: order.append("comment")
        tracker.close_issue.side_effect = lambda *a, **k: order.append("close")

        outcome = await ActionExecutor(tracker).close("org", "repo", 7, "bye", dry_run=False)

        assert outcome == CloseOutcome.CLOSED
        assert order == ["comment", "close"]
        tracker.create_comment.assert_awaited_once_with("org", "repo", 7, "bye")
        tracker.close_issue.assert_awaited_once_with("org", "repo", 7, "not_planned")

    async def test_not_found_on_comment_is_already_resolved(self, tracker: MagicMock) -> None:
        """A vanished issue counts as already resolved and is not closed."""
        tracker.create_comment.side_effect = NotFoundError("gone", status_code=404)

        outcome = await ActionExecutor(tracker).close("org", "repo", 7, "bye", dry_run=False)

        assert outcome == CloseOutcome.ALREADY_RESOLVED
        tracker.close_issue.assert_not_called()

    async def test_not_found_on_close_is_already_resolved(self, tracker: MagicMock) -> None:
        """A 404 on the state change is also already resolved."""
        tracker.close_issue.side_effect = NotFoundError("gone", status_code=404)

        outcome = await ActionExecutor(tracker).close("org", "repo", 7, "bye", dry_run=False)
        assert outcome == CloseOutcome.ALREADY_RESOLVED

    async def test_comment_failure_skips_close(self, tracker: MagicMock) -> None:
        """If the comment fails the issue is left untouched."""
        tracker.create_comment.side_effect = RemoteServiceError("denied", status_code=403)

        with pytest.raises(RemoteServiceError):
            await ActionExecutor(tracker).close("org", "repo", 7, "bye", dry_run=False)
        tracker.close_issue.assert_not_called()

    async def test_close_failure_after_comment_raises(self, tracker: MagicMock) -> None:
        """A failed state change after the comment propagates."""
        tracker.close_issue.side_effect = ServerError("boom", status_code=500)

        with pytest.raises(ServerError):
            await ActionExecutor(tracker).close("org", "repo", 7, "bye", dry_run=False)
        tracker.create_comment.assert_awaited_once()
