"""Summary statistics over a list of commits.

Each report is an independent pure function. ``calculate_summary_stats`` is
the one the workflow uses; the others are computed on demand.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

from .analysis import (
    apply_commit_filters,
    extract_unique_authors,
    extract_unique_repositories,
    group_commits_by_author,
    group_commits_by_date,
    group_commits_by_repository,
)
from .functional import pipe
from .models import (
    AuthorStats,
    CodeChangeStats,
    CommitData,
    ComprehensiveAnalysis,
    DailyStats,
    DateRange,
    RepositoryCount,
    RepositoryStats,
    SummaryStats,
    TimelineEntry,
    TimeSeriesAnalysis,
)

DEFAULT_TOP_REPOSITORIES = 10
SUMMARY_TOP_REPOSITORIES = 5


def calculate_total_additions(commits: Sequence[CommitData]) -> int:
    return sum(c.additions or 0 for c in commits)


def calculate_total_deletions(commits: Sequence[CommitData]) -> int:
    return sum(c.deletions or 0 for c in commits)


def get_commit_count_by_date(commits: Sequence[CommitData]) -> dict[str, int]:
    return {day: len(group) for day, group in group_commits_by_date(commits).items()}


def get_commit_count_by_author(commits: Sequence[CommitData]) -> dict[str, int]:
    return {author: len(group) for author, group in group_commits_by_author(commits).items()}


def find_most_active_day(commits: Sequence[CommitData]) -> str:
    """Day with the most commits; on a tie the day seen first wins."""
    counts = get_commit_count_by_date(commits)
    if not counts:
        return ""
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[0][0]


def calculate_average_commits_per_day(commits: Sequence[CommitData]) -> float:
    counts = get_commit_count_by_date(commits)
    if not counts:
        return 0.0
    return sum(counts.values()) / len(counts)


def get_top_repositories_by_commits(
    commits: Sequence[CommitData], limit: int = DEFAULT_TOP_REPOSITORIES
) -> list[RepositoryCount]:
    ranked = sorted(
        (RepositoryCount(name=name, commits=len(group))
         for name, group in group_commits_by_repository(commits).items()),
        key=lambda repo: repo.commits,
        reverse=True,
    )
    return ranked[: max(limit, 0)]


def calculate_summary_stats(
    commits: Sequence[CommitData],
    top_repositories_limit: int = SUMMARY_TOP_REPOSITORIES,
) -> SummaryStats:
    return SummaryStats(
        total_commits=len(commits),
        unique_authors=len(extract_unique_authors(commits)),
        repositories=tuple(extract_unique_repositories(commits)),
        most_active_day=find_most_active_day(commits),
        average_commits_per_day=calculate_average_commits_per_day(commits),
        total_additions=calculate_total_additions(commits),
        total_deletions=calculate_total_deletions(commits),
        commits_by_day=get_commit_count_by_date(commits),
        commits_by_author=get_commit_count_by_author(commits),
        top_repositories=tuple(get_top_repositories_by_commits(commits, top_repositories_limit)),
    )


def analyze_commits(
    commits: Sequence[CommitData],
    date_range: DateRange | None = None,
    authors: Sequence[str] | None = None,
    repositories: Sequence[str] | None = None,
    top_repositories_limit: int = SUMMARY_TOP_REPOSITORIES,
) -> SummaryStats:
    """Filter, then summarize."""
    return pipe(
        commits,
        apply_commit_filters(date_range, authors, repositories),
        lambda filtered: calculate_summary_stats(filtered, top_repositories_limit),
    )


def calculate_daily_stats(commits: Sequence[CommitData]) -> DailyStats:
    counts = list(get_commit_count_by_date(commits).values())
    if not counts:
        return DailyStats()
    return DailyStats(
        average_per_day=sum(counts) / len(counts),
        max_per_day=max(counts),
        min_per_day=min(counts),
        total_days=len(counts),
    )


def calculate_author_stats(commits: Sequence[CommitData]) -> AuthorStats:
    distribution = get_commit_count_by_author(commits)
    if not distribution:
        return AuthorStats()
    top_author = sorted(distribution.items(), key=lambda item: item[1], reverse=True)[0][0]
    return AuthorStats(
        total_authors=len(distribution),
        average_commits_per_author=sum(distribution.values()) / len(distribution),
        top_author=top_author,
        author_distribution=distribution,
    )


def calculate_repository_stats(commits: Sequence[CommitData]) -> RepositoryStats:
    top = get_top_repositories_by_commits(commits)
    names = extract_unique_repositories(commits)
    return RepositoryStats(
        total_repositories=len(names),
        repositories=tuple(names),
        top_repositories=tuple(top),
        repository_distribution={repo.name: repo.commits for repo in top},
    )


def calculate_code_change_stats(commits: Sequence[CommitData]) -> CodeChangeStats:
    additions = calculate_total_additions(commits)
    deletions = calculate_total_deletions(commits)
    changed = sum(1 for c in commits if (c.additions or 0) > 0 or (c.deletions or 0) > 0)
    return CodeChangeStats(
        total_additions=additions,
        total_deletions=deletions,
        total_changes=additions + deletions,
        net_changes=additions - deletions,
        average_additions_per_commit=additions / changed if changed else 0.0,
        average_deletions_per_commit=deletions / changed if changed else 0.0,
        commits_with_code_changes=changed,
    )


def _longest_streak(days: Sequence[str]) -> int:
    longest = current = 0
    previous: date | None = None
    for day in days:
        parsed = date.fromisoformat(day)
        if previous is not None and parsed - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = parsed
    return longest


def generate_time_series_analysis(commits: Sequence[CommitData]) -> TimeSeriesAnalysis:
    """Daily timeline with running totals and the longest run of active days."""
    counts = get_commit_count_by_date(commits)
    days = sorted(counts)
    if not days:
        return TimeSeriesAnalysis()

    timeline = []
    running = 0
    for day in days:
        running += counts[day]
        timeline.append(TimelineEntry(date=day, commits=counts[day], cumulative_commits=running))

    first, last = date.fromisoformat(days[0]), date.fromisoformat(days[-1])
    return TimeSeriesAnalysis(
        timeline=tuple(timeline),
        total_days=(last - first).days + 1,
        first_commit_date=days[0],
        last_commit_date=days[-1],
        longest_streak=_longest_streak(days),
        total_active_days=len(days),
    )


def generate_comprehensive_analysis(
    commits: Sequence[CommitData], now: datetime | None = None
) -> ComprehensiveAnalysis:
    return ComprehensiveAnalysis(
        summary=calculate_summary_stats(commits),
        daily=calculate_daily_stats(commits),
        authors=calculate_author_stats(commits),
        repositories=calculate_repository_stats(commits),
        code_changes=calculate_code_change_stats(commits),
        generated_at=now or datetime.now(timezone.utc),
        total_commits_analyzed=len(commits),
    )
