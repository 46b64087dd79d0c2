"""Validation of raw summary requests.

Pure functions: no I/O, no exceptions. Every rule is checked independently
and all violations are reported together.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time, timezone
from typing import Any

from .config import DEFAULT_CONFIG, ValidationConfig
from .models import DateRange, SummaryRequest, ValidationError
from .result import Result, failure, success

REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9_-]*[A-Za-z0-9])?$")
BRANCH_PATTERN = re.compile(r"^[A-Za-z0-9/_.-]+$")
MAX_USERNAME_LENGTH = 39
SECONDS_PER_DAY = 86400

_MESSAGES = {
    "dateRange.invalidStartDate": "Start date is not a valid date",
    "dateRange.invalidEndDate": "End date is not a valid date",
    "dateRange.startAfterEnd": "Start date must be before end date",
    "dateRange.futureDate": "Dates cannot be in the future",
    "dateRange.tooLong": "Date range cannot exceed {max_days} days (selected: {selected_days} days)",
    "dateRange.tooShort": "Date range must be at least {min_days} day(s)",
    "repositories.notList": "Repositories must be provided as a list",
    "repositories.empty": "At least one repository must be selected",
    "repositories.tooMany": "Cannot process more than {max_repos} repositories (selected: {count})",
    "repositories.invalidFormat": "Invalid repository format: {repos}. Expected format: owner/repo",
    "repositories.duplicates": "Duplicate repositories are not allowed: {duplicates}",
    "users.notList": "Users must be provided as a list",
    "users.tooMany": "Cannot filter by more than {max_users} users (selected: {count})",
    "users.invalidUsername": "Invalid GitHub username(s): {users}",
    "users.duplicates": "Duplicate users are not allowed: {duplicates}",
    "branch.notString": "Branch name must be a string",
    "branch.empty": "Branch name cannot be empty",
    "branch.tooLong": "Branch name is too long (max {max_length} characters, provided: {length})",
    "branch.invalidCharacters": (
        "Branch name contains invalid characters. "
        "Only alphanumeric, /, -, _, and . are allowed"
    ),
    "request.notObject": "Request must be a valid object",
    "request.missingDateRange": "Date range is required",
    "request.missingRepositories": "Repositories list is required",
}


def create_error_message(key: str, **params: Any) -> str:
    """Render a message template; unknown keys render as themselves."""
    template = _MESSAGES.get(key, key)
    return template.format(**params) if params else template


def _preview(items: Sequence[str], limit: int = 3) -> str:
    shown = ", ".join(items[:limit])
    return shown + ("..." if len(items) > limit else "")


def _duplicates(items: Sequence[str], normalize=lambda s: s) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for item in items:
        key = normalize(item)
        if key in seen and item not in dupes:
            dupes.append(item)
        seen.add(key)
    return dupes


def coerce_datetime(value: Any) -> datetime | None:
    """Parse a datetime, date or ISO-8601 string into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def span_in_days(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def validate_date_range(
    start: Any,
    end: Any,
    config: ValidationConfig | None = None,
    now: datetime | None = None,
) -> Result:
    cfg = config or DEFAULT_CONFIG.validation
    start_dt = coerce_datetime(start)
    end_dt = coerce_datetime(end)

    errors: list[str] = []
    if start_dt is None:
        errors.append(create_error_message("dateRange.invalidStartDate"))
    if end_dt is None:
        errors.append(create_error_message("dateRange.invalidEndDate"))
    if errors:
        return failure(errors)

    if start_dt > end_dt:
        errors.append(create_error_message("dateRange.startAfterEnd"))

    if not cfg.allow_future_dates:
        reference = coerce_datetime(now) if now is not None else datetime.now(timezone.utc)
        if end_dt > reference:
            errors.append(create_error_message("dateRange.futureDate"))

    # span limits only apply to an ordered range
    if start_dt <= end_dt:
        days = span_in_days(start_dt, end_dt)
        if days > cfg.max_date_range_days:
            errors.append(
                create_error_message(
                    "dateRange.tooLong", max_days=cfg.max_date_range_days, selected_days=days
                )
            )
        if days < cfg.min_date_range_days:
            errors.append(
                create_error_message("dateRange.tooShort", min_days=cfg.min_date_range_days)
            )

    if errors:
        return failure(errors)
    return success(DateRange(start=start_dt, end=end_dt))


def validate_repositories(repos: Any, config: ValidationConfig | None = None) -> Result:
    cfg = config or DEFAULT_CONFIG.validation
    if isinstance(repos, (str, bytes)) or not isinstance(repos, Sequence):
        return failure([create_error_message("repositories.notList")])
    if len(repos) == 0:
        return failure([create_error_message("repositories.empty")])

    errors: list[str] = []
    if len(repos) > cfg.max_repositories:
        errors.append(
            create_error_message(
                "repositories.tooMany", max_repos=cfg.max_repositories, count=len(repos)
            )
        )

    invalid = [
        str(repo) for repo in repos
        if not isinstance(repo, str) or not REPOSITORY_PATTERN.match(repo)
    ]
    if invalid:
        errors.append(create_error_message("repositories.invalidFormat", repos=_preview(invalid)))

    dupes = _duplicates([r for r in repos if isinstance(r, str)])
    if dupes:
        errors.append(create_error_message("repositories.duplicates", duplicates=", ".join(dupes)))

    if errors:
        return failure(errors)
    return success(tuple(repos))


def validate_users(users: Any, config: ValidationConfig | None = None) -> Result:
    if users is None:
        return success(None)
    cfg = config or DEFAULT_CONFIG.validation
    if isinstance(users, (str, bytes)) or not isinstance(users, Sequence):
        return failure([create_error_message("users.notList")])

    errors: list[str] = []
    if len(users) > cfg.max_users:
        errors.append(
            create_error_message("users.tooMany", max_users=cfg.max_users, count=len(users))
        )

    invalid = [
        str(user) for user in users
        if not isinstance(user, str)
        or len(user) > MAX_USERNAME_LENGTH
        or not USERNAME_PATTERN.match(user)
    ]
    if invalid:
        errors.append(create_error_message("users.invalidUsername", users=_preview(invalid)))

    dupes = _duplicates([u for u in users if isinstance(u, str)], normalize=str.lower)
    if dupes:
        errors.append(create_error_message("users.duplicates", duplicates=", ".join(dupes)))

    if errors:
        return failure(errors)
    return success(tuple(users))


def validate_branch(branch: Any, config: ValidationConfig | None = None) -> Result:
    if branch is None:
        return success(None)
    cfg = config or DEFAULT_CONFIG.validation
    if not isinstance(branch, str):
        return failure([create_error_message("branch.notString")])
    if not branch.strip():
        return failure([create_error_message("branch.empty")])

    errors: list[str] = []
    if len(branch) > cfg.max_branch_name_length:
        errors.append(
            create_error_message(
                "branch.tooLong", max_length=cfg.max_branch_name_length, length=len(branch)
            )
        )
    if not BRANCH_PATTERN.match(branch):
        errors.append(create_error_message("branch.invalidCharacters"))

    if errors:
        return failure(errors)
    return success(branch)


def _field_errors(result: Result, field: str, code: str) -> list[ValidationError]:
    if result.success:
        return []
    return [ValidationError(field=field, message=message, code=code) for message in result.error]


def _get(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _range_bounds(value: Any) -> tuple[Any, Any]:
    if isinstance(value, DateRange):
        return value.start, value.end
    return value.get("start"), value.get("end")


def validate_summary_request(
    raw: Any,
    config: ValidationConfig | None = None,
    now: datetime | None = None,
) -> Result:
    """Turn untyped input into a SummaryRequest, or a list of ValidationErrors.

    ``raw`` is a mapping with ``repositories``, ``dateRange`` (or
    ``date_range``) holding ``start``/``end``, and optional ``users``,
    ``branch`` and ``includePrivate``. The ``"me"`` placeholder in ``users``
    must already have been resolved by the caller.
    """
    if not isinstance(raw, Mapping):
        return failure([
            ValidationError(
                field="request",
                message=create_error_message("request.notObject"),
                code="INVALID_TYPE",
            )
        ])

    errors: list[ValidationError] = []

    date_range_result: Result | None = None
    raw_range = _get(raw, "dateRange", "date_range")
    if not isinstance(raw_range, (Mapping, DateRange)):
        errors.append(
            ValidationError(
                field="dateRange",
                message=create_error_message("request.missingDateRange"),
                code="MISSING_FIELD",
            )
        )
    else:
        start, end = _range_bounds(raw_range)
        date_range_result = validate_date_range(start, end, config, now=now)
        errors.extend(_field_errors(date_range_result, "dateRange", "INVALID_DATE_RANGE"))

    repositories_result: Result | None = None
    raw_repositories = raw.get("repositories")
    if raw_repositories is None:
        errors.append(
            ValidationError(
                field="repositories",
                message=create_error_message("request.missingRepositories"),
                code="MISSING_FIELD",
            )
        )
    else:
        repositories_result = validate_repositories(raw_repositories, config)
        errors.extend(_field_errors(repositories_result, "repositories", "INVALID_REPOSITORIES"))

    users_result = validate_users(raw.get("users"), config)
    errors.extend(_field_errors(users_result, "users", "INVALID_USERS"))

    branch_result = validate_branch(raw.get("branch"), config)
    errors.extend(_field_errors(branch_result, "branch", "INVALID_BRANCH"))

    if errors or date_range_result is None or repositories_result is None:
        return failure(errors)

    return success(
        SummaryRequest(
            repositories=repositories_result.data,
            date_range=date_range_result.data,
            users=users_result.data,
            include_private=bool(_get(raw, "includePrivate", "include_private")),
            branch=branch_result.data,
        )
    )
