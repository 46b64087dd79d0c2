"""Tests for commit filtering, grouping and ordering."""

from __future__ import annotations

from datetime import datetime, timezone

from gitpulse.analysis import (
    apply_commit_filters,
    commit_day,
    extract_unique_authors,
    extract_unique_repositories,
    filter_commits_by_authors,
    filter_commits_by_date_range,
    filter_commits_by_organizations,
    filter_commits_by_repositories,
    filter_repositories,
    group_commits_by_author,
    group_commits_by_date,
    group_commits_by_repository,
    parse_commit_date,
    sort_commits_by_date_asc,
    sort_commits_by_date_desc,
)
from gitpulse.models import CommitData, DateRange, Repository


def _commit(sha: str, author: str = "alice", repo: str = "acme/api", date: str = "2024-01-01T10:00:00Z", **kw):
    return CommitData(sha=sha, message=f"commit {sha}", author=author, date=date, repository=repo, **kw)


COMMITS = [
    _commit("1", "alice", "acme/api", "2024-01-01T10:00:00Z"),
    _commit("2", "Bob", "acme/web", "2024-01-02T10:00:00Z"),
    _commit("3", "alice", "other/lib", "2024-01-03T10:00:00Z"),
    _commit("4", "carol", "acme/api", "2024-01-05T10:00:00Z"),
]


def test_parse_commit_date():
    assert parse_commit_date("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert parse_commit_date("2024-01-01T10:00:00").tzinfo is timezone.utc
    assert parse_commit_date("yesterday") is None
    assert parse_commit_date("") is None


def test_commit_day_uses_timestamp_calendar_day():
    assert commit_day(_commit("x", date="2024-03-09T23:30:00-05:00")) == "2024-03-09"
    assert commit_day(_commit("x", date="broken")) is None


def test_filter_by_date_range_is_inclusive():
    start = datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    end = datetime(2024, 1, 3, 10, tzinfo=timezone.utc)
    assert [c.sha for c in filter_commits_by_date_range(start, end)(COMMITS)] == ["2", "3"]


def test_filter_by_date_range_drops_unparseable_dates():
    commits = [_commit("bad", date="nope")]
    start = datetime(2000, 1, 1, tzinfo=timezone.utc)
    end = datetime(2100, 1, 1, tzinfo=timezone.utc)
    assert filter_commits_by_date_range(start, end)(commits) == []


def test_filter_by_authors_case_insensitive():
    assert [c.sha for c in filter_commits_by_authors(["bob"])(COMMITS)] == ["2"]


def test_filter_by_authors_me_placeholder():
    assert [c.sha for c in filter_commits_by_authors(["me"], current_user="Carol")(COMMITS)] == ["4"]
    assert filter_commits_by_authors(["me"])(COMMITS) == []
    shas = [c.sha for c in filter_commits_by_authors(["me", "bob"], current_user="carol")(COMMITS)]
    assert shas == ["2", "4"]


def test_filter_by_repositories_and_organizations():
    assert [c.sha for c in filter_commits_by_repositories(["acme/api"])(COMMITS)] == ["1", "4"]
    assert [c.sha for c in filter_commits_by_organizations(["ACME"])(COMMITS)] == ["1", "2", "4"]


def test_apply_commit_filters_combines_with_and():
    date_range = DateRange(
        datetime(2024, 1, 1, tzinfo=timezone.utc), datetime(2024, 1, 4, tzinfo=timezone.utc)
    )
    combined = apply_commit_filters(
        date_range=date_range, authors=["alice"], organizations=["acme"]
    )(COMMITS)
    assert [c.sha for c in combined] == ["1"]


def test_apply_commit_filters_without_filters_copies():
    result = apply_commit_filters()(COMMITS)
    assert result == COMMITS
    assert result is not COMMITS


def test_apply_commit_filters_ignores_empty_lists():
    assert apply_commit_filters(authors=[], repositories=[])(COMMITS) == COMMITS


def test_grouping():
    by_date = group_commits_by_date(COMMITS + [_commit("5", date="junk")])
    assert list(by_date) == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05"]
    assert sum(len(v) for v in by_date.values()) == 4

    by_author = group_commits_by_author(COMMITS)
    assert [c.sha for c in by_author["alice"]] == ["1", "3"]

    by_repo = group_commits_by_repository(COMMITS)
    assert list(by_repo) == ["acme/api", "acme/web", "other/lib"]


def test_unique_authors_first_spelling_wins():
    commits = [_commit("1", "Alice"), _commit("2", "alice"), _commit("3", "bob")]
    assert extract_unique_authors(commits) == ["Alice", "bob"]


def test_unique_repositories_first_seen():
    assert extract_unique_repositories(COMMITS) == ["acme/api", "acme/web", "other/lib"]


def test_sorting_by_date():
    shuffled = [COMMITS[2], _commit("bad", date="??"), COMMITS[0], COMMITS[3]]
    assert [c.sha for c in sort_commits_by_date_desc(shuffled)] == ["4", "3", "1", "bad"]
    assert [c.sha for c in sort_commits_by_date_asc(shuffled)] == ["1", "3", "4", "bad"]


def test_filter_repositories():
    repos = [Repository("acme/api"), Repository("acme/web"), Repository("other/lib")]
    assert filter_repositories(repos, organizations=["acme"]) == repos[:2]
    assert filter_repositories(repos, names=["other/lib"]) == [repos[2]]
    assert filter_repositories(repos, ["acme"], ["other/lib"]) == []
    assert filter_repositories(repos) == repos
