"""The summary workflow: validate, fetch, filter, aggregate, recover.

``generate_summary`` returns an Effect. Nothing runs until the caller awaits
it. An invalid request never reaches the data provider at all.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from .analysis import ME, apply_commit_filters
from .config import DEFAULT_CONFIG, ValidationConfig
from .effects import Effect, catch_effect, effect, fail, map_effect, with_retry, with_timeout
from .errors import SummaryError, ValidationAggregateError
from .functional import pipe
from .instrumentation import (
    create_logging_context,
    log_error,
    log_info,
    with_correlation_id,
    with_logging,
)
from .models import CommitData, SummaryRequest, SummaryStats
from .providers import DataProvider
from .result import Result
from .statistics import SUMMARY_TOP_REPOSITORIES, calculate_summary_stats
from .validation import validate_summary_request

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = (
    "Failed to fetch data from GitHub. Please check your connection and try again."
)
TIMEOUT_MESSAGE = (
    "Request timed out. Try selecting fewer repositories or a shorter date range."
)


@dataclass(frozen=True)
class SummaryServiceConfig:
    validation: ValidationConfig = field(default_factory=lambda: DEFAULT_CONFIG.validation)
    top_repositories_limit: int = SUMMARY_TOP_REPOSITORIES
    # seconds allowed for each fetch attempt; None disables the limit
    timeout: float | None = None
    current_user: str | None = None
    retry_attempts: int = 1
    retry_delay: float = 1.0


def validate_request(raw: Any, config: ValidationConfig | None = None) -> Result:
    """Pre-flight validation; never touches a data provider."""
    return validate_summary_request(raw, config or DEFAULT_CONFIG.validation)


def resolve_user_placeholder(raw: Any, current_user: str | None) -> Any:
    """Replace ``"me"`` in ``raw["users"]`` with ``current_user``.

    Duplicates collapse (case-insensitive), order is kept. When the current
    user is unknown the placeholder is dropped. Anything that is not a
    mapping with a list of users is returned untouched.
    """
    if not isinstance(raw, Mapping):
        return raw
    users = raw.get("users")
    if not isinstance(users, (list, tuple)) or ME not in users:
        return raw

    resolved: list[Any] = []
    seen: set[str] = set()
    for user in users:
        if user == ME:
            if not current_user:
                continue
            user = current_user
        key = user.lower() if isinstance(user, str) else user
        if key in seen:
            continue
        seen.add(key)
        resolved.append(user)
    return {**raw, "users": resolved}


def map_workflow_error(error: BaseException) -> BaseException:
    """Translate a workflow failure into the message shown to users."""
    if isinstance(error, ValidationAggregateError):
        return SummaryError(f"Validation failed: {error}")
    if isinstance(error, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return SummaryError(TIMEOUT_MESSAGE)
    if isinstance(error, httpx.TransportError):
        return SummaryError(FETCH_FAILED_MESSAGE)
    message = str(error).lower()
    if "fetch" in message or "network" in message:
        return SummaryError(FETCH_FAILED_MESSAGE)
    if "timeout" in message or "timed out" in message:
        return SummaryError(TIMEOUT_MESSAGE)
    return error


def _recover(error: BaseException) -> SummaryStats:
    mapped = map_workflow_error(error)
    if mapped is error:
        raise error
    raise mapped from error


def _filter_users(request: SummaryRequest, current_user: str | None):
    def apply(commits: list[CommitData]) -> list[CommitData]:
        if not request.users:
            return commits
        # date range and repositories were already applied by the provider
        return apply_commit_filters(authors=request.users, current_user=current_user)(commits)

    return apply


def _fetch(
    request: SummaryRequest, provider: DataProvider, config: SummaryServiceConfig
) -> Effect[list[CommitData]]:
    fetch = provider.fetch_commits(request.repositories, request.date_range, request.branch)
    if config.timeout:
        fetch = with_timeout(config.timeout)(fetch)
    if config.retry_attempts > 1:
        fetch = with_retry(config.retry_attempts, config.retry_delay)(fetch)
    return fetch


def generate_summary(
    raw_request: Any,
    data_provider: DataProvider,
    config: SummaryServiceConfig | None = None,
) -> Effect[SummaryStats]:
    config = config or SummaryServiceConfig()
    validated = validate_summary_request(raw_request, config.validation)
    if not validated.success:
        return pipe(fail(ValidationAggregateError(validated.error)), catch_effect(_recover))

    request: SummaryRequest = validated.data
    return pipe(
        _fetch(request, data_provider, config),
        map_effect(_filter_users(request, config.current_user)),
        map_effect(lambda commits: calculate_summary_stats(commits, config.top_repositories_limit)),
        catch_effect(_recover),
    )


def generate_logged_summary(
    raw_request: Any,
    data_provider: DataProvider,
    config: SummaryServiceConfig | None = None,
    correlation_id: str | None = None,
) -> Effect[SummaryStats]:
    """``generate_summary`` with every stage logged under one correlation id."""
    config = config or SummaryServiceConfig()
    context = create_logging_context("summary-workflow", correlation_id)

    async def run() -> SummaryStats:
        validated = await with_logging("request-validation")(
            effect(_async_value(validate_summary_request, raw_request, config.validation))
        )()
        if not validated.success:
            await log_error(
                "Validation failed",
                data={"errors": [f"{e.field}: {e.message}" for e in validated.error]},
            )()
            raise ValidationAggregateError(validated.error)

        request: SummaryRequest = validated.data
        await log_info(
            "Request validation successful",
            {
                "repositories": len(request.repositories),
                "start": request.date_range.start.isoformat(),
                "end": request.date_range.end.isoformat(),
                "users": len(request.users or ()),
            },
        )()

        commits = await with_logging("github-data-fetch")(
            _fetch(request, data_provider, config)
        )()
        await log_info(
            "Data fetch completed",
            {
                "commits": len(commits),
                "repositories": len({c.repository for c in commits}),
                "authors": len({c.author for c in commits}),
            },
        )()

        filtered = await with_logging("commit-filtering")(
            effect(_async_value(_filter_users(request, config.current_user), commits))
        )()
        stats = await with_logging("statistics-calculation")(
            effect(
                _async_value(calculate_summary_stats, filtered, config.top_repositories_limit)
            )
        )()
        await log_info(
            "Summary generated",
            {"total_commits": stats.total_commits, "unique_authors": stats.unique_authors},
        )()
        return stats

    return pipe(
        effect(run),
        with_logging("summary-workflow"),
        with_correlation_id(context),
        catch_effect(_recover),
    )


def _async_value(fn, *args: Any):
    async def run():
        return fn(*args)

    return run
