"""Tests for templated configuration loading and context overrides."""

from pathlib import Path

import pytest

from src.catalog.runtime.config.config_data import ConfigData, ThrottleRuleConfig
from src.catalog.runtime.config.config_template import (
    load_templated_yaml,
    parse_templated_yaml,
    substitute_env_vars,
)
from src.catalog.runtime.context import (
    get_config,
    get_context,
    merge_configs,
    set_config,
    set_context,
    with_context,
)

PROJECT_CONFIG = Path(__file__).resolve().parents[4] / "config.yaml"


class TestSubstituteEnvVars:
    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)
        assert substitute_env_vars("x: ${CATALOG_TEST_VAR:-fallback}") == "x: fallback"

    def test_environment_wins_over_default(self, monkeypatch):
        monkeypatch.setenv("CATALOG_TEST_VAR", "from-env")
        assert substitute_env_vars("x: ${CATALOG_TEST_VAR:-fallback}") == "x: from-env"

    def test_required_variable_missing(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)
        with pytest.raises(ValueError, match="CATALOG_TEST_VAR"):
            substitute_env_vars("x: ${CATALOG_TEST_VAR}")

    def test_required_variable_custom_message(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)
        with pytest.raises(ValueError, match="set me please"):
            substitute_env_vars("x: ${CATALOG_TEST_VAR:?set me please}")


class TestParseTemplatedYaml:
    def test_parses_config_section(self):
        config = parse_templated_yaml(
            """
config:
  cache:
    enabled: false
  rate_limiter:
    throttles:
      req/ip: {limit: 7, period_seconds: 3}
"""
        )

        assert config.cache.enabled is False
        assert config.rate_limiter.throttles == {
            "req/ip": ThrottleRuleConfig(limit=7, period_seconds=3)
        }
        assert config.jwt.algorithm == "HS256"

    def test_empty_document(self):
        with pytest.raises(ValueError):
            parse_templated_yaml("")

    def test_invalid_yaml(self):
        with pytest.raises(ValueError, match="Error parsing YAML"):
            parse_templated_yaml("config: [unclosed")

    def test_invalid_values(self):
        with pytest.raises(ValueError, match="Invalid configuration"):
            parse_templated_yaml("config:\n  cache:\n    default_ttl_seconds: 0\n")

    def test_project_config_file_loads(self, monkeypatch):
        for name in ("APP_ENVIRONMENT", "REDIS_URL", "LOG_FILE", "JWT_SECRET"):
            monkeypatch.delenv(name, raising=False)

        config = load_templated_yaml(PROJECT_CONFIG, env_mode="test")

        assert config.app.port == 8000
        assert config.redis.url == ""
        assert config.logging.file == ""
        assert config.rate_limiter.throttles["logins/ip"].limit == 5

    def test_environment_prefixed_override(self, monkeypatch):
        monkeypatch.setenv("TEST_LOG_LEVEL", "DEBUG")
        # Restored on teardown after the override rewrites it
        monkeypatch.setenv("LOG_LEVEL", "INFO")

        config = load_templated_yaml(PROJECT_CONFIG, env_mode="test")

        assert config.logging.level == "DEBUG"


class TestRedisConnectionString:
    def test_password_is_injected(self):
        config = ConfigData()
        config.redis.url = "redis://cache:6379/0"
        config.redis.password = "s3cret"

        assert config.redis.connection_string == "redis://:s3cret@cache:6379/0"
        assert "s3cret" not in config.redis.sanitized_connection_string


class TestContextOverrides:
    def test_partial_override_inherits_unset_fields(self):
        original = get_config()
        override = ConfigData()
        override.cache.enabled = not original.cache.enabled

        with with_context(override):
            current = get_config()
            assert current.cache.enabled is (not original.cache.enabled)
            assert current.jwt.issuer == original.jwt.issuer
            assert current.database.url == original.database.url

        assert get_config() is original

    def test_nested_overrides(self):
        first = ConfigData()
        first.logging.level = "DEBUG"
        second = ConfigData()
        second.cache.default_ttl_seconds = 5

        outer_ttl = get_config().cache.default_ttl_seconds

        with with_context(first):
            with with_context(second):
                current = get_config()
                assert current.logging.level == "DEBUG"
                assert current.cache.default_ttl_seconds == 5
            assert get_config().logging.level == "DEBUG"
            assert get_config().cache.default_ttl_seconds == outer_ttl

    def test_none_is_a_no_op(self):
        original = get_config()
        with with_context(None):
            assert get_config() is original

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            with with_context({"cache": {"enabled": False}}):
                pass

    def test_merge_configs(self):
        base = ConfigData()
        base.jwt.issuer = "base-issuer"
        override = ConfigData()
        override.jwt.audience = "override-audience"

        merged = merge_configs(base, override)

        assert merged.jwt.issuer == "base-issuer"
        assert merged.jwt.audience == "override-audience"

    def test_set_config_replaces_everything(self):
        original_context = get_context()
        replacement = ConfigData()
        replacement.jwt.issuer = "replaced"
        try:
            set_config(replacement)
            assert get_config() is replacement
        finally:
            set_context(original_context)

        assert get_config() is original_context.config
