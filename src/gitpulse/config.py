"""Application configuration: defaults, overrides and validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .result import Result, failure, success

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "gitpulse"


@dataclass(frozen=True)
class GitHubConfig:
    api_url: str = "https://api.github.com"
    timeout: float = 30.0
    per_page: int = 100
    concurrency: int = 5
    # OAuth tokens have a tighter rate budget than installation tokens
    oauth_batch_size: int = 5
    app_batch_size: int = 30
    rate_limit_threshold: int = 10


@dataclass(frozen=True)
class ValidationConfig:
    max_repositories: int = 100
    max_date_range_days: int = 365
    min_date_range_days: int = 0
    max_users: int = 50
    max_branch_name_length: int = 250
    allow_future_dates: bool = False


@dataclass(frozen=True)
class CacheConfig:
    ttl: int = 3600
    directory: Path = DEFAULT_CACHE_DIR


@dataclass(frozen=True)
class EffectsConfig:
    """Retry and time limit for the fetch stage of the summary workflow."""

    retry_max_attempts: int = 3
    retry_delay: float = 1.0
    # seconds per fetch attempt; None means no limit
    timeout: float | None = None


@dataclass(frozen=True)
class SummaryConfig:
    top_repositories_limit: int = 5


@dataclass(frozen=True)
class AppConfig:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    effects: EffectsConfig = field(default_factory=EffectsConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)


DEFAULT_CONFIG = AppConfig()


@dataclass(frozen=True)
class ConfigValidationError:
    field: str
    message: str
    value: Any


def _merge(base: Any, overrides: Mapping[str, Any], path: str = "") -> Any:
    known = {f.name for f in fields(base)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(f"Unknown configuration key: {path}{key}")
        current = getattr(base, key)
        if is_dataclass(current) and isinstance(value, Mapping):
            changes[key] = _merge(current, value, f"{path}{key}.")
        else:
            changes[key] = value
    return replace(base, **changes)


def create_config(overrides: Mapping[str, Any] | None = None) -> AppConfig:
    """Deep-merge a nested mapping of overrides onto the defaults.

    >>> create_config({"validation": {"max_users": 10}}).validation.max_users
    10
    """
    if not overrides:
        return DEFAULT_CONFIG
    return _merge(DEFAULT_CONFIG, overrides)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Any) -> Result:
    if not isinstance(config, AppConfig):
        return failure(
            [ConfigValidationError("config", "Configuration must be an AppConfig", config)]
        )

    errors: list[ConfigValidationError] = []

    def check(ok: bool, name: str, message: str, value: Any) -> None:
        if not ok:
            errors.append(ConfigValidationError(name, message, value))

    gh = config.github
    check(_is_number(gh.timeout) and gh.timeout > 0,
          "github.timeout", "GitHub timeout must be a positive number", gh.timeout)
    check(isinstance(gh.per_page, int) and 1 <= gh.per_page <= 100,
          "github.per_page", "GitHub per_page must be between 1 and 100", gh.per_page)
    for name in ("concurrency", "oauth_batch_size", "app_batch_size"):
        value = getattr(gh, name)
        check(isinstance(value, int) and value > 0,
              f"github.{name}", f"GitHub {name.replace('_', ' ')} must be a positive number", value)

    limits = config.validation
    for name in ("max_repositories", "max_date_range_days", "max_users", "max_branch_name_length"):
        value = getattr(limits, name)
        check(isinstance(value, int) and value > 0,
              f"validation.{name}", f"{name.replace('_', ' ').capitalize()} must be a positive number", value)
    check(isinstance(limits.min_date_range_days, int) and limits.min_date_range_days >= 0,
          "validation.min_date_range_days",
          "Min date range days must be a non-negative number", limits.min_date_range_days)
    if _is_number(limits.min_date_range_days) and _is_number(limits.max_date_range_days):
        check(limits.min_date_range_days < limits.max_date_range_days,
              "validation", "Min date range days must be less than max date range days",
              {"min": limits.min_date_range_days, "max": limits.max_date_range_days})

    eff = config.effects
    check(isinstance(eff.retry_max_attempts, int) and eff.retry_max_attempts > 0,
          "effects.retry_max_attempts", "Effect retry max attempts must be a positive number",
          eff.retry_max_attempts)
    check(_is_number(eff.retry_delay) and eff.retry_delay >= 0,
          "effects.retry_delay", "Effect retry delay must be a non-negative number", eff.retry_delay)
    check(eff.timeout is None or (_is_number(eff.timeout) and eff.timeout > 0),
          "effects.timeout", "Effect timeout must be a positive number", eff.timeout)

    check(isinstance(config.summary.top_repositories_limit, int)
          and config.summary.top_repositories_limit > 0,
          "summary.top_repositories_limit", "Top repositories limit must be a positive number",
          config.summary.top_repositories_limit)

    if errors:
        return failure(errors)
    return success(config)


def create_validated_config(overrides: Mapping[str, Any] | None = None) -> Result:
    try:
        config = create_config(overrides)
    except ConfigError as exc:
        return failure([ConfigValidationError("config", str(exc), overrides)])
    return validate_config(config)


def create_validation_config(**overrides: Any) -> ValidationConfig:
    return replace(DEFAULT_CONFIG.validation, **overrides)
