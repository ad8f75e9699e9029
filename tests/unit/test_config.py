"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import SecretStr, ValidationError

from issue_resolver.config.loader import (
    load_config,
    require_organizations,
    require_token,
    substitute_env_vars,
    token_from_env,
)
from issue_resolver.config.schema import (
    DEFAULT_ORGANIZATIONS,
    GitHubConfig,
    ResolverConfig,
    RetryConfig,
    RuleSet,
    ScheduleConfig,
)
from issue_resolver.models.decision import Reason
from issue_resolver.utils.async_helpers import ConfigurationError


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


class TestSubstituteEnvVars:
    """Test environment variable substitution."""

    def test_substitute_single_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting a single environment variable."""
        monkeypatch.setenv("TEST_VAR", "test_value")
        assert substitute_env_vars("Value is ${TEST_VAR}") == "Value is test_value"

    def test_substitute_multiple_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting multiple environment variables."""
        monkeypatch.setenv("VAR1", "value1")
        monkeypatch.setenv("VAR2", "value2")
        assert substitute_env_vars("${VAR1} and ${VAR2}") == "value1 and value2"

    def test_missing_env_var_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that missing environment variables raise ConfigurationError."""
        monkeypatch.delenv("MISSING", raising=False)
        with pytest.raises(ConfigurationError, match="Environment variable MISSING not found"):
            substitute_env_vars("Value is ${MISSING}")

    def test_no_substitution_needed(self) -> None:
        """Test text without environment variables passes through unchanged."""
        assert substitute_env_vars("plain text without vars") == "plain text without vars"


class TestDefaults:
    """Test the built-in defaults."""

    def test_default_config(self) -> None:
        """Defaults cover the four organizations and a 90 day threshold."""
        config = ResolverConfig()
        assert config.organizations == DEFAULT_ORGANIZATIONS
        assert config.rules.stale_threshold_days == 90
        assert config.rules.max_issues_per_run == 100
        assert config.github.token is None

    def test_default_rules(self) -> None:
        """Default label sets and keywords."""
        rules = RuleSet()
        assert rules.protected_labels == frozenset(
            {"critical", "security", "in-progress", "help-wanted"}
        )
        assert rules.auto_close_labels == frozenset({"wontfix", "duplicate", "invalid", "stale"})
        assert "fixed" in rules.resolved_keywords
        assert all(p.reason == Reason.BOT_CLEANUP for p in rules.bot_patterns)

    def test_rules_are_immutable(self) -> None:
        """The rule set cannot be changed after construction."""
        rules = RuleSet()
        with pytest.raises(ValidationError):
            rules.stale_threshold_days = 1  # type: ignore[misc]


class TestValidation:
    """Test schema validation."""

    def test_invalid_organization_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid organization name"):
            ResolverConfig(organizations=["bad/org"])

    def test_blank_organizations_dropped(self) -> None:
        assert ResolverConfig(organizations=["a", " ", ""]).organizations == ["a"]

    def test_cap_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            RuleSet(max_issues_per_run=0)

    def test_negative_threshold_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RuleSet(stale_threshold_days=-1)

    def test_api_url_must_be_http(self) -> None:
        with pytest.raises(ValidationError, match="Invalid API URL"):
            GitHubConfig(api_url="ftp://example.com")

    def test_api_url_trailing_slash_stripped(self) -> None:
        assert GitHubConfig(api_url="https://ghe.example.com/api/v3/").api_url == (
            "https://ghe.example.com/api/v3"
        )

    def test_per_page_bounds(self) -> None:
        with pytest.raises(ValidationError):
            GitHubConfig(per_page=101)

    def test_retry_allows_zero_delay(self) -> None:
        retry = RetryConfig(initial_delay=0, max_delay=0)
        assert retry.initial_delay == 0

    def test_schedule_interval_minimum(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleConfig(interval_seconds=10)


class TestLoadConfig:
    """Test loading configuration from files and the environment."""

    def test_no_file_uses_defaults(self) -> None:
        config = load_config()
        assert config.organizations == DEFAULT_ORGANIZATIONS

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "absent.yaml")

    def test_yaml_values(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path,
            """
organizations:
  - acme
rules:
  stale_threshold_days: 30
  protected_labels: [Pinned]
  bot_patterns:
    - pattern: "^\\\\[bot\\\\]"
      description: Bot prefix
schedule:
  interval_seconds: 3600
""",
        )
        config = load_config(path)

        assert config.organizations == ["acme"]
        assert config.rules.stale_threshold_days == 30
        assert config.rules.protected_labels == frozenset({"pinned"})
        assert config.rules.bot_patterns[0].pattern == r"^\[bot\]"
        assert config.schedule.interval_seconds == 3600

    def test_yaml_env_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_TOKEN", "from-yaml-env")
        path = write_config(tmp_path, "github:\n  token: ${MY_TOKEN}\n")
        assert require_token(load_config(path)) == "from-yaml-env"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "organizations: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_schema_error_wrapped(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "rules:\n  max_issues_per_run: 0\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "")
        assert load_config(path).organizations == DEFAULT_ORGANIZATIONS


class TestEnvironment:
    """Test environment variable overrides."""

    def test_github_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "primary")
        monkeypatch.setenv("GH_TOKEN", "secondary")
        assert require_token(load_config()) == "primary"

    def test_gh_token_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GH_TOKEN", "secondary")
        assert token_from_env() == "secondary"
        assert require_token(load_config()) == "secondary"

    def test_empty_token_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "")
        assert token_from_env() is None

    def test_orgs_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ORGS", "acme, widgets,,")
        assert load_config().organizations == ["acme", "widgets"]

    def test_orgs_variable_beats_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ORGS", "acme")
        path = write_config(tmp_path, "organizations: [other]\n")
        assert load_config(path).organizations == ["acme"]

    def test_stale_days_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STALE_DAYS", "14")
        assert load_config().rules.stale_threshold_days == 14

    def test_invalid_stale_days_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STALE_DAYS", "soon")
        assert load_config().rules.stale_threshold_days == 90

    def test_prefixed_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESOLVER_GITHUB__TOKEN", "prefixed")
        assert require_token(load_config()) == "prefixed"


class TestRequirements:
    """Test the pre-flight checks."""

    def test_require_token_missing(self) -> None:
        with pytest.raises(ConfigurationError, match="GITHUB_TOKEN or GH_TOKEN"):
            require_token(ResolverConfig())

    def test_require_token_empty(self) -> None:
        config = ResolverConfig(github=GitHubConfig(token=SecretStr("")))
        with pytest.raises(ConfigurationError):
            require_token(config)

    def test_require_organizations(self) -> None:
        assert require_organizations(["a"]) == ["a"]
        with pytest.raises(ConfigurationError):
            require_organizations([])
