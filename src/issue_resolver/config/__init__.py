"""Configuration loading and validation."""

from .loader import load_config, require_organizations, require_token
from .schema import (
    DEFAULT_ORGANIZATIONS,
    BotPattern,
    GitHubConfig,
    LoggingConfig,
    MessageTemplates,
    ResolverConfig,
    RetryConfig,
    RuleSet,
    ScheduleConfig,
)

__all__ = [
    # Loader
    "load_config",
    "require_organizations",
    "require_token",
    # Root config
    "ResolverConfig",
    "DEFAULT_ORGANIZATIONS",
    # Policy
    "RuleSet",
    "BotPattern",
    "MessageTemplates",
    # Ambient settings
    "GitHubConfig",
    "LoggingConfig",
    "RetryConfig",
    "ScheduleConfig",
]
