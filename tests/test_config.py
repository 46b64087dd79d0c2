"""Tests for configuration."""

from __future__ import annotations

import pytest

from gitpulse.config import (
    DEFAULT_CONFIG,
    AppConfig,
    create_config,
    create_validated_config,
    create_validation_config,
    validate_config,
)
from gitpulse.errors import ConfigError


def test_defaults():
    limits = DEFAULT_CONFIG.validation
    assert limits.max_repositories == 100
    assert limits.max_date_range_days == 365
    assert limits.min_date_range_days == 0
    assert limits.max_users == 50
    assert limits.max_branch_name_length == 250
    assert limits.allow_future_dates is False
    assert DEFAULT_CONFIG.github.oauth_batch_size == 5
    assert DEFAULT_CONFIG.github.app_batch_size == 30


def test_create_config_deep_merges():
    config = create_config({"validation": {"max_users": 10}, "github": {"timeout": 5}})
    assert config.validation.max_users == 10
    assert config.validation.max_repositories == 100
    assert config.github.timeout == 5
    assert DEFAULT_CONFIG.validation.max_users == 50


def test_create_config_without_overrides_returns_defaults():
    assert create_config() is DEFAULT_CONFIG


def test_create_config_rejects_unknown_keys():
    with pytest.raises(ConfigError, match="validation.max_widgets"):
        create_config({"validation": {"max_widgets": 1}})


def test_validate_default_config():
    assert validate_config(DEFAULT_CONFIG).success


def test_validate_config_collects_errors():
    config = create_config(
        {
            "github": {"timeout": 0, "per_page": 500},
            "validation": {"min_date_range_days": 400},
            "effects": {"retry_delay": -1, "timeout": 0},
        }
    )
    outcome = validate_config(config)
    assert not outcome.success
    fields = {e.field for e in outcome.error}
    assert {
        "github.timeout",
        "github.per_page",
        "validation",
        "effects.retry_delay",
        "effects.timeout",
    } <= fields


def test_validate_config_rejects_wrong_type():
    outcome = validate_config({"github": {}})
    assert not outcome.success
    assert outcome.error[0].field == "config"


def test_create_validated_config():
    assert isinstance(create_validated_config({"summary": {"top_repositories_limit": 3}}).data, AppConfig)
    bad = create_validated_config({"nope": 1})
    assert not bad.success
    assert "Unknown configuration key" in bad.error[0].message


def test_create_validation_config():
    limits = create_validation_config(allow_future_dates=True)
    assert limits.allow_future_dates is True
    assert limits.max_users == 50


def test_effects_timeout_disabled_by_default():
    assert DEFAULT_CONFIG.effects.timeout is None
    assert validate_config(create_config({"effects": {"timeout": 12.5}})).success
