"""Utility functions and helpers.

This module provides various utilities for the issue resolver:
- security: Credential redaction, name validation
- async_helpers: Error taxonomy, async retry
- logging: Structured logging with credential sanitization
- health: Health checks for the scheduled service
"""

from issue_resolver.utils.async_helpers import (
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    RemoteServiceError,
    ResolverError,
    ServerError,
)
from issue_resolver.utils.health import (
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from issue_resolver.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    configure_logging,
    register_secret,
    unbind_context,
)
from issue_resolver.utils.security import (
    SecretRedactor,
    SecurityError,
    ValidationError,
)

__all__ = [
    # Errors
    "ConfigurationError",
    # Health
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    # Logging
    "LogFormat",
    "LogLevel",
    "NotFoundError",
    "RateLimitError",
    "RemoteServiceError",
    "ResolverError",
    # Security
    "SecretRedactor",
    "SecurityError",
    "ServerError",
    "ValidationError",
    "bind_context",
    "configure_logging",
    "register_secret",
    "unbind_context",
]
