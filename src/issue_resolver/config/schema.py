"""Pydantic models for configuration schema."""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.decision import CLOSE_REASONS, Reason

DEFAULT_ORGANIZATIONS = ["chittyos", "chittyapps", "chittyfoundation", "chittycorp"]


class BotPattern(BaseModel):
    """A title pattern identifying automated or low-value issues."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    reason: Reason = Reason.BOT_CLEANUP
    description: str = ""

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Reject patterns that do not compile."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid bot pattern {v!r}: {e}") from e
        return v

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: Reason) -> Reason:
        """Only closing reasons make sense for a title pattern."""
        if v not in CLOSE_REASONS:
            raise ValueError(f"Bot pattern reason must be a closing reason, got {v.value}")
        return v


DEFAULT_BOT_PATTERNS = [
    BotPattern(pattern=r"^\[P\d\]", description="Priority tags like [P1], [P2]"),
    BotPattern(pattern=r"^_.*_$", description="Italic wrapped titles"),
    BotPattern(pattern=r"Badge.*flat", description="Badge issues"),
    BotPattern(pattern=r"(?i)Codex Review", description="Automated review issues"),
]


class MessageTemplates(BaseModel):
    """Comment bodies posted before closing, one per closing reason."""

    model_config = ConfigDict(frozen=True)

    stale: str = (
        "This issue has been automatically closed due to inactivity. "
        "If this is still relevant, please reopen with updated information."
    )
    duplicate: str = "Closing as duplicate. Please refer to the linked issue for updates."
    resolved: str = "This issue appears to have been resolved. Closing automatically."
    bot_cleanup: str = "Closing automated/bot-generated issue as part of repository cleanup."

    def message_for(self, reason: Reason) -> str:
        """Return the comment body for a closing reason."""
        templates = {
            Reason.LABELED: self.duplicate,
            Reason.BOT_CLEANUP: self.bot_cleanup,
            Reason.RESOLVED: self.resolved,
            Reason.STALE: self.stale,
        }
        if reason not in templates:
            raise ValueError(f"No close message for reason {reason.value}")
        return templates[reason]


class RuleSet(BaseModel):
    """Issue resolution policy shared by every entry point."""

    model_config = ConfigDict(frozen=True)

    stale_threshold_days: int = Field(90, ge=0)
    protected_labels: frozenset[str] = frozenset(
        {"critical", "security", "in-progress", "help-wanted"}
    )
    auto_close_labels: frozenset[str] = frozenset({"wontfix", "duplicate", "invalid", "stale"})
    bot_patterns: tuple[BotPattern, ...] = tuple(DEFAULT_BOT_PATTERNS)
    resolved_keywords: tuple[str, ...] = ("completed", "done", "fixed", "resolved", "shipped")
    messages: MessageTemplates = MessageTemplates()
    max_issues_per_run: int = Field(100, ge=1)

    @field_validator("protected_labels", "auto_close_labels")
    @classmethod
    def normalize_labels(cls, v: frozenset[str]) -> frozenset[str]:
        """Labels compare case-insensitively."""
        return frozenset(label.strip().lower() for label in v if label.strip())

    @field_validator("resolved_keywords")
    @classmethod
    def normalize_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Keywords compare case-insensitively."""
        return tuple(kw.lower() for kw in v if kw)


class GitHubConfig(BaseModel):
    """GitHub API configuration."""

    token: SecretStr | None = None
    api_url: str = "https://api.github.com"
    timeout: float = Field(30.0, gt=0)
    auth_check_timeout: float = Field(5.0, gt=0)
    per_page: int = Field(100, ge=1, le=100)

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require an http(s) base URL without trailing slash."""
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Invalid API URL: {v}. Expected an http(s) URL")
        return v.rstrip("/")


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("/var/log/issue-resolver/resolver.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class RetryConfig(BaseModel):
    """Retry configuration for transient failures."""

    max_attempts: int = Field(3, ge=1, le=10)
    initial_delay: float = Field(1.0, ge=0.0, le=10.0)
    max_delay: float = Field(30.0, ge=0.0, le=300.0)
    exponential_base: float = Field(2.0, ge=1.5, le=4.0)


class ScheduleConfig(BaseModel):
    """Recurring scan-and-resolve configuration for the service."""

    enabled: bool = True
    interval_seconds: int = Field(86400, ge=60)
    dry_run: bool = False
    run_on_startup: bool = False


class ResolverConfig(BaseSettings):
    """Root configuration for the issue resolver."""

    organizations: list[str] = Field(default_factory=lambda: list(DEFAULT_ORGANIZATIONS))
    github: GitHubConfig = GitHubConfig()
    rules: RuleSet = RuleSet()
    retry: RetryConfig = RetryConfig()
    logging: LoggingConfig = LoggingConfig()
    schedule: ScheduleConfig = ScheduleConfig()

    model_config = SettingsConfigDict(
        env_prefix="RESOLVER_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("organizations")
    @classmethod
    def validate_organizations(cls, v: list[str]) -> list[str]:
        """Validate organization logins and drop blanks."""
        from ..utils.security import validate_org_name

        orgs = [org.strip() for org in v if org.strip()]
        for org in orgs:
            if not validate_org_name(org):
                raise ValueError(f"Invalid organization name: {org}")
        return orgs
