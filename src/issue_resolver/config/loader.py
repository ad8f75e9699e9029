"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from ..utils.async_helpers import ConfigurationError
from .schema import ResolverConfig

log = structlog.get_logger()

# Credential variables, in order of precedence
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ConfigurationError: If a referenced environment variable is not found
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path | None = None) -> ResolverConfig:
    """
    Load configuration from an optional YAML file and the environment.

    Values come, in increasing order of precedence, from the defaults, the
    RESOLVER_* environment variables and .env file, the YAML file, and the
    ORGS / STALE_DAYS variables used by the scheduled deployment. The token
    falls back to GITHUB_TOKEN or GH_TOKEN.

    Args:
        path: Path to YAML configuration file, or None to use defaults

    Returns:
        Validated ResolverConfig instance

    Raises:
        ConfigurationError: If the file is missing, a variable is undefined
            or the configuration does not match the schema
    """
    config_dict: dict[str, Any] = {}

    if path is not None:
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        with path.open() as f:
            raw_yaml = f.read()

        yaml_with_env = substitute_env_vars(raw_yaml)

        try:
            config_dict = yaml.safe_load(yaml_with_env) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {path}")

    apply_legacy_env(config_dict)

    try:
        config = ResolverConfig(**config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if config.github.token is None:
        token = token_from_env()
        if token:
            config.github.token = SecretStr(token)

    return config


def apply_legacy_env(config_dict: dict[str, Any]) -> None:
    """Apply the ORGS and STALE_DAYS variables of the scheduled deployment.

    ORGS is a comma separated list. An unparsable STALE_DAYS is ignored and
    the configured threshold stays in effect.
    """
    orgs = os.environ.get("ORGS")
    if orgs:
        config_dict["organizations"] = [org.strip() for org in orgs.split(",") if org.strip()]

    stale_days = os.environ.get("STALE_DAYS")
    if stale_days:
        try:
            days = int(stale_days)
        except ValueError:
            log.warning("invalid_stale_days_ignored", value=stale_days)
        else:
            rules = dict(config_dict.get("rules") or {})
            rules["stale_threshold_days"] = days
            config_dict["rules"] = rules


def token_from_env() -> str | None:
    """Return the first non-empty credential variable, if any."""
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def require_token(config: ResolverConfig) -> str:
    """
    Return the GitHub token or fail before any network call.

    Raises:
        ConfigurationError: If no token is configured
    """
    if config.github.token is None or not config.github.token.get_secret_value():
        raise ConfigurationError("GITHUB_TOKEN or GH_TOKEN environment variable required")
    return config.github.token.get_secret_value()


def require_organizations(orgs: list[str]) -> list[str]:
    """
    Reject an empty organization list.

    Raises:
        ConfigurationError: If there is nothing to scan
    """
    if not orgs:
        raise ConfigurationError("At least one organization must be configured")
    return orgs
