"""Data models for gitpulse."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class CommitData:
    """A single commit, already fetched from the hosting API."""

    sha: str
    message: str
    author: str
    date: str  # ISO-8601
    repository: str
    additions: int | None = None
    deletions: int | None = None
    url: str | None = None


@dataclass(frozen=True)
class Repository:
    full_name: str
    private: bool = False
    html_url: str | None = None

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SummaryRequest:
    """A validated request. Superseded, never updated."""

    repositories: tuple[str, ...]
    date_range: DateRange
    users: tuple[str, ...] | None = None
    include_private: bool = False
    branch: str | None = None


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str
    code: str


@dataclass(frozen=True)
class RepositoryCount:
    name: str
    commits: int


@dataclass(frozen=True)
class SummaryStats:
    total_commits: int
    unique_authors: int
    repositories: tuple[str, ...]
    most_active_day: str
    average_commits_per_day: float
    total_additions: int
    total_deletions: int
    commits_by_day: dict[str, int] = field(default_factory=dict)
    commits_by_author: dict[str, int] = field(default_factory=dict)
    top_repositories: tuple[RepositoryCount, ...] = ()


@dataclass(frozen=True)
class DailyStats:
    average_per_day: float = 0.0
    max_per_day: int = 0
    min_per_day: int = 0
    total_days: int = 0


@dataclass(frozen=True)
class AuthorStats:
    total_authors: int = 0
    average_commits_per_author: float = 0.0
    top_author: str = ""
    author_distribution: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RepositoryStats:
    total_repositories: int = 0
    repositories: tuple[str, ...] = ()
    top_repositories: tuple[RepositoryCount, ...] = ()
    repository_distribution: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CodeChangeStats:
    """Line-change totals; averages only count commits that changed lines."""

    total_additions: int = 0
    total_deletions: int = 0
    total_changes: int = 0
    net_changes: int = 0
    average_additions_per_commit: float = 0.0
    average_deletions_per_commit: float = 0.0
    commits_with_code_changes: int = 0


@dataclass(frozen=True)
class TimelineEntry:
    date: str
    commits: int
    cumulative_commits: int


@dataclass(frozen=True)
class TimeSeriesAnalysis:
    timeline: tuple[TimelineEntry, ...] = ()
    total_days: int = 0
    first_commit_date: str | None = None
    last_commit_date: str | None = None
    longest_streak: int = 0
    total_active_days: int = 0


@dataclass(frozen=True)
class ComprehensiveAnalysis:
    summary: SummaryStats
    daily: DailyStats
    authors: AuthorStats
    repositories: RepositoryStats
    code_changes: CodeChangeStats
    generated_at: datetime
    total_commits_analyzed: int
    analysis_version: str = "1.0.0"
