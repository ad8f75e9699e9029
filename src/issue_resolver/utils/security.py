"""Credential redaction and name validation.

The GitHub token must never reach log output. Organization and repository
names come from configuration and API responses, and are checked before they
are interpolated into request paths.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class SecurityError(Exception):
    """Base exception for security-related errors."""


class ValidationError(SecurityError):
    """An organization or repository name is unsafe to use in a request path."""


# GitHub logins: alphanumerics and single hyphens, at most 39 characters
ORG_NAME_PATTERN = re.compile(r"[a-zA-Z0-9](?:[a-zA-Z0-9]|-(?=[a-zA-Z0-9])){0,38}")

# Repository names: alphanumerics, underscores, hyphens and periods
REPO_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_.-]{1,100}")

# Token formats GitHub issues, Authorization values and key=value credentials
CREDENTIAL_PATTERN = re.compile(
    r"gh[pousr]_[a-zA-Z0-9]{36}"
    r"|github_pat_\w{22,}"
    r"|(?i:bearer|token)\s+[\w.-]{16,}"
    r"|(?i:api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}"
)

# Literal secrets shorter than this are not registered
MIN_SECRET_LENGTH = 8

# ANSI colour sequences and control characters other than tab and newline
ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class SecretRedactor:
    """Replaces GitHub credentials in text with a placeholder.

    Anything shaped like a GitHub token or an Authorization value is
    redacted. Values registered with ``add_secret``, such as the configured
    token, are redacted verbatim whatever their shape.

    Usage:
        redactor = SecretRedactor(secrets=[token])
        safe_text = redactor.redact(error_message)
    """

    def __init__(self, placeholder: str = "[REDACTED]", secrets: Iterable[str] = ()) -> None:
        self.placeholder = placeholder
        self._secrets: set[str] = set()
        for secret in secrets:
            self.add_secret(secret)

    def add_secret(self, secret: str) -> None:
        """Redact ``secret`` wherever it appears from now on."""
        if len(secret) >= MIN_SECRET_LENGTH:
            self._secrets.add(secret)

    def redact(self, text: str) -> str:
        """Return ``text`` with every known and token-shaped secret replaced."""
        if not text:
            return text

        # Longest first, so a secret containing another is replaced whole
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, self.placeholder)
        return CREDENTIAL_PATTERN.sub(self.placeholder, text)


def validate_org_name(org: str) -> bool:
    """Return True if ``org`` is a well-formed GitHub organization login."""
    return bool(org) and ORG_NAME_PATTERN.fullmatch(org) is not None


def validate_repo_name(repo: str) -> bool:
    """Return True if ``repo`` is a repository name (without owner) safe for a URL path."""
    if repo in {"", ".", ".."}:
        return False
    return REPO_NAME_PATTERN.fullmatch(repo) is not None


def sanitize_for_logging(text: str) -> str:
    """Strip ANSI sequences and control characters from user-supplied text.

    Issue titles are written by anyone who can open an issue; this keeps
    them from forging log lines or corrupting terminal output.
    """
    if not text:
        return text
    return CONTROL_CHARS.sub("", ANSI_ESCAPE.sub("", text))
