"""Error taxonomy and retry helpers for resilient API calls.

This module provides:
- The resolver's exception hierarchy (configuration vs remote failures)
- Retry decorators with exponential backoff for transient remote errors,
  waiting as long as the service asks when it sends Retry-After

Configuration errors are fatal and surface before any network call.
Remote errors are recoverable at the scope where they occur.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class ResolverError(Exception):
    """Base exception for all resolver errors."""


class ConfigurationError(ResolverError):
    """Missing credential, empty organization list or invalid settings."""


class RemoteServiceError(ResolverError):
    """The issue tracking service answered with a non-success status.

    Attributes:
        status_code: HTTP status of the failed response, if any.
        context: Identifiers (org, repo, issue) describing the failed call.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.context = context or {}


class NotFoundError(RemoteServiceError):
    """The target resource does not exist (HTTP 404)."""


class ServerError(RemoteServiceError):
    """The service failed on its side (HTTP 5xx)."""


class RateLimitError(RemoteServiceError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Number of seconds to wait before retrying, if known.
    """

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, context=context)
        self.retry_after = retry_after


TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    RateLimitError,
    ServerError,
)


# =============================================================================
# Retry Decorator
# =============================================================================


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "retrying_operation",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=retry_state.next_action.sleep if retry_state.next_action else 0,
        )


def wait_retry_after(
    fallback: Callable[[RetryCallState], float],
    max_wait: float,
) -> Callable[[RetryCallState], float]:
    """Build a tenacity wait that honours the server's Retry-After.

    When the failed attempt raised a RateLimitError carrying ``retry_after``,
    that many seconds are waited, capped at ``max_wait``. Any other failure
    uses ``fallback``.
    """

    def wait(retry_state: RetryCallState) -> float:
        if retry_state.outcome is not None:
            exception = retry_state.outcome.exception()
            if isinstance(exception, RateLimitError) and exception.retry_after is not None:
                return min(float(exception.retry_after), max_wait)
        return fallback(retry_state)

    return wait


def create_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 30.0,
    exponential_base: float = 2.0,
    retry_on: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Create a customized retry decorator.

    Args:
        max_attempts: Maximum number of attempts, the first call included.
        min_wait: Initial wait between attempts (seconds).
        max_wait: Maximum wait time between retries (seconds).
        exponential_base: Growth factor of the wait between attempts.
        retry_on: Tuple of exception types to retry on.

    Returns:
        A retry decorator configured with the given parameters.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_retry_after(
            wait_exponential(
                multiplier=min_wait, min=min_wait, max=max_wait, exp_base=exponential_base
            ),
            max_wait=max_wait,
        ),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )
