"""Pure commit filtering, grouping and ordering."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone

from .functional import group_by, sort_by, unique_by
from .models import CommitData, DateRange, Repository

ME = "me"

CommitFilter = Callable[[Sequence[CommitData]], list[CommitData]]


def parse_commit_date(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def commit_day(commit: CommitData) -> str | None:
    """Calendar day of the commit as written in its timestamp."""
    parsed = parse_commit_date(commit.date)
    return parsed.date().isoformat() if parsed else None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _owner(full_name: str) -> str:
    return full_name.split("/", 1)[0]


# -- filters -----------------------------------------------------------------


def filter_commits_by_date_range(start: datetime, end: datetime) -> CommitFilter:
    lower, upper = _as_utc(start), _as_utc(end)

    def apply(commits: Sequence[CommitData]) -> list[CommitData]:
        kept = []
        for commit in commits:
            when = parse_commit_date(commit.date)
            if when is not None and lower <= when <= upper:
                kept.append(commit)
        return kept

    return apply


def filter_commits_by_authors(
    authors: Iterable[str], current_user: str | None = None
) -> CommitFilter:
    """Keep commits whose author is listed (case-insensitive).

    The ``"me"`` placeholder matches ``current_user``; with no current user it
    matches nothing.
    """
    names = list(authors)
    wanted = {a.lower() for a in names if a != ME}
    if ME in names and current_user:
        wanted.add(current_user.lower())

    return lambda commits: [c for c in commits if c.author.lower() in wanted]


def filter_commits_by_repositories(repositories: Iterable[str]) -> CommitFilter:
    wanted = set(repositories)
    return lambda commits: [c for c in commits if c.repository in wanted]


def filter_commits_by_organizations(organizations: Iterable[str]) -> CommitFilter:
    wanted = {org.lower() for org in organizations}
    return lambda commits: [
        c for c in commits if "/" in c.repository and _owner(c.repository).lower() in wanted
    ]


def apply_commit_filters(
    date_range: DateRange | None = None,
    authors: Sequence[str] | None = None,
    repositories: Sequence[str] | None = None,
    organizations: Sequence[str] | None = None,
    current_user: str | None = None,
) -> CommitFilter:
    """Intersect every filter that was given; empty lists mean "no filter"."""
    steps: list[CommitFilter] = []
    if date_range is not None:
        steps.append(filter_commits_by_date_range(date_range.start, date_range.end))
    if authors:
        steps.append(filter_commits_by_authors(authors, current_user))
    if repositories:
        steps.append(filter_commits_by_repositories(repositories))
    if organizations:
        steps.append(filter_commits_by_organizations(organizations))

    def apply(commits: Sequence[CommitData]) -> list[CommitData]:
        result = list(commits)
        for step in steps:
            result = step(result)
        return result

    return apply


def filter_repositories(
    repositories: Sequence[Repository],
    organizations: Sequence[str] = (),
    names: Sequence[str] = (),
) -> list[Repository]:
    result = list(repositories)
    if organizations:
        result = [r for r in result if r.owner in organizations]
    if names:
        result = [r for r in result if r.full_name in names]
    return result


# -- grouping ----------------------------------------------------------------


def group_commits_by_date(commits: Sequence[CommitData]) -> dict[str, list[CommitData]]:
    """Group by ``YYYY-MM-DD``; commits with an unparseable date are left out."""
    dated = [(day, c) for c in commits if (day := commit_day(c)) is not None]
    return {day: [c for _, c in pairs] for day, pairs in group_by(lambda p: p[0])(dated).items()}


def group_commits_by_author(commits: Sequence[CommitData]) -> dict[str, list[CommitData]]:
    return group_by(lambda c: c.author)(commits)


def group_commits_by_repository(commits: Sequence[CommitData]) -> dict[str, list[CommitData]]:
    return group_by(lambda c: c.repository)(commits)


def extract_unique_authors(commits: Sequence[CommitData]) -> list[str]:
    """Distinct authors ignoring case; the first spelling seen is kept."""
    return [c.author for c in unique_by(lambda c: c.author.lower())(commits)]


def extract_unique_repositories(commits: Sequence[CommitData]) -> list[str]:
    return [c.repository for c in unique_by(lambda c: c.repository)(commits)]


# -- ordering ----------------------------------------------------------------


def _compare_dates(newest_first: bool) -> Callable[[CommitData, CommitData], int]:
    def compare(a: CommitData, b: CommitData) -> int:
        da, db = parse_commit_date(a.date), parse_commit_date(b.date)
        if da is None or db is None:
            # unparseable dates go last
            return (da is None) - (db is None)
        if da == db:
            return 0
        if newest_first:
            return -1 if da > db else 1
        return -1 if da < db else 1

    return compare


def sort_commits_by_date_desc(commits: Sequence[CommitData]) -> list[CommitData]:
    return sort_by(_compare_dates(newest_first=True))(commits)


def sort_commits_by_date_asc(commits: Sequence[CommitData]) -> list[CommitData]:
    return sort_by(_compare_dates(newest_first=False))(commits)
