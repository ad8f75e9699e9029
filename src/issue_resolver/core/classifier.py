"""Rule evaluation turning an issue snapshot into a decision.

Rules are checked in a fixed precedence order and the first match wins:

1. protected label      -> skip
2. auto-close label     -> close (labeled)
3. bot title pattern    -> close (pattern reason, botCleanup by default)
4. resolved keyword     -> close (resolved)
5. stale                -> close (stale)
6. otherwise            -> keep (active)

The functions here perform no I/O and never mutate their inputs.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from ..models.decision import Action, Decision, Reason

if TYPE_CHECKING:
    from ..config.schema import BotPattern, RuleSet
    from ..models.issue import IssueSnapshot

ONE_DAY = timedelta(days=1)


def classify(issue: IssueSnapshot, rules: RuleSet, now: datetime | None = None) -> Decision:
    """Classify one issue against the rule set.

    Args:
        issue: The issue snapshot to evaluate.
        rules: The resolution policy.
        now: Reference time for staleness; defaults to the current UTC time.
            Pass a fixed value to get reproducible decisions.

    Returns:
        The decision for the issue.
    """
    labels = {label.lower() for label in issue.labels}

    if labels & rules.protected_labels:
        return Decision(Action.SKIP, Reason.PROTECTED)

    if labels & rules.auto_close_labels:
        return _close(Reason.LABELED, rules)

    pattern = match_bot_pattern(issue.title, rules.bot_patterns)
    if pattern is not None:
        return _close(pattern.reason, rules)

    title = issue.title.lower()
    if any(keyword in title for keyword in rules.resolved_keywords):
        return _close(Reason.RESOLVED, rules)

    if days_since(issue.updated_at, now) > rules.stale_threshold_days:
        return _close(Reason.STALE, rules)

    return Decision(Action.KEEP, Reason.ACTIVE)


def match_bot_pattern(title: str, patterns: tuple[BotPattern, ...]) -> BotPattern | None:
    """Return the first bot pattern found in the raw title, if any."""
    for pattern in patterns:
        if re.search(pattern.pattern, title):
            return pattern
    return None


def days_since(updated_at: datetime, now: datetime | None = None) -> int:
    """Whole days elapsed since ``updated_at``, truncated toward zero."""
    if now is None:
        now = datetime.now(UTC)
    return int((now - updated_at) / ONE_DAY)


def _close(reason: Reason, rules: RuleSet) -> Decision:
    return Decision(Action.CLOSE, reason, rules.messages.message_for(reason))
