"""Data providers: where commits come from.

The workflow only depends on the ``DataProvider`` protocol. ``GitHubDataProvider``
talks to the GitHub REST API; ``StaticDataProvider`` serves a fixed list.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from .analysis import filter_repositories
from .auth_mapping import OAUTH_GROUP, Installation, map_repositories_to_installations
from .config import GitHubConfig
from .effects import Effect, io_effect
from .functional import chunk, unique_by
from .github.client import GitHubClient
from .models import CommitData, DateRange, Repository

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GitHubClient]
GroupFailureHandler = Callable[[str, Exception], None]
RepositoryFailureHandler = Callable[[str, Exception], None]

_REPO_FROM_URL = re.compile(r"github\.com/([^/]+/[^/]+)")


class DataProvider(Protocol):
    """Source of commits for a set of repositories.

    ``fetch_commits`` must not raise; failures surface when the returned
    Effect is awaited.
    """

    def fetch_commits(
        self,
        repositories: Sequence[str],
        date_range: DateRange,
        branch: str | None = None,
    ) -> Effect[list[CommitData]]: ...


@dataclass(frozen=True)
class FetchCall:
    repositories: tuple[str, ...]
    date_range: DateRange
    branch: str | None


class StaticDataProvider:
    """Serves a fixed list of commits, or fails with ``error``."""

    def __init__(
        self,
        commits: Sequence[CommitData] = (),
        error: Exception | None = None,
    ) -> None:
        self._commits = list(commits)
        self._error = error
        self.calls: list[FetchCall] = []

    def fetch_commits(
        self,
        repositories: Sequence[str],
        date_range: DateRange,
        branch: str | None = None,
    ) -> Effect[list[CommitData]]:
        self.calls.append(FetchCall(tuple(repositories), date_range, branch))

        async def run() -> list[CommitData]:
            if self._error is not None:
                raise self._error
            return list(self._commits)

        return io_effect(run)


def transform_github_commit(
    raw: Mapping[str, Any], repository: str | None = None
) -> CommitData:
    """Convert one item of ``GET /repos/{owner}/{repo}/commits``.

    ``repository`` is the requested ``owner/name``; without it the name is
    read from a github.com ``html_url``.
    """
    html_url = raw.get("html_url") or ""
    if repository is None:
        match = _REPO_FROM_URL.search(html_url)
        repository = match.group(1) if match else "unknown/unknown"
    commit = raw.get("commit") or {}
    git_author = commit.get("author") or {}
    login = (raw.get("author") or {}).get("login")
    stats = raw.get("stats") or {}
    return CommitData(
        sha=raw.get("sha", ""),
        message=commit.get("message", ""),
        author=login or git_author.get("name") or "unknown",
        date=git_author.get("date") or _isoformat(datetime.now(timezone.utc)),
        repository=repository,
        additions=stats.get("additions"),
        deletions=stats.get("deletions"),
        url=html_url or None,
    )


def transform_installation(raw: Mapping[str, Any]) -> Installation:
    account = raw.get("account") or {}
    return Installation(
        id=int(raw["id"]),
        account_login=account.get("login", ""),
        app_slug=raw.get("app_slug"),
        app_id=raw.get("app_id"),
        target_type=raw.get("target_type") or account.get("type"),
    )


def transform_repository(raw: Mapping[str, Any]) -> Repository:
    return Repository(
        full_name=raw["full_name"],
        private=bool(raw.get("private", False)),
        html_url=raw.get("html_url"),
    )


def _isoformat(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _default_client_factory(config: GitHubConfig) -> ClientFactory:
    def create(token: str) -> GitHubClient:
        return GitHubClient(
            token,
            concurrency=config.concurrency,
            base_url=config.api_url,
            timeout=config.timeout,
            per_page=config.per_page,
            rate_limit_threshold=config.rate_limit_threshold,
        )

    return create


class GitHubDataProvider:
    """Fetch commits from GitHub, one credential group at a time.

    Repositories are bucketed by credential (see ``auth_mapping``). Each
    bucket is fetched concurrently with the others; inside a bucket,
    repositories go out in batches sized for the credential type.

    A repository whose request fails (HTTP error status or transport error)
    contributes no commits and is reported to ``on_repository_failure``; the
    rest of its bucket still counts. A bucket that fails as a whole is
    reported to ``on_group_failure``. With ``strict`` set, either failure
    propagates instead.
    """

    def __init__(
        self,
        access_token: str | None = None,
        installation_tokens: Mapping[int, str] | None = None,
        installations: Sequence[Installation] | None = None,
        selected_installation_ids: Sequence[int] | None = None,
        config: GitHubConfig | None = None,
        client_factory: ClientFactory | None = None,
        strict: bool = False,
        on_group_failure: GroupFailureHandler | None = None,
        on_repository_failure: RepositoryFailureHandler | None = None,
        app_slug: str | None = None,
        app_id: int | None = None,
    ) -> None:
        self._access_token = access_token
        self._installation_tokens = dict(installation_tokens or {})
        self._installations = list(installations) if installations is not None else None
        self._selected_ids = (
            list(selected_installation_ids)
            if selected_installation_ids is not None
            else list(self._installation_tokens)
        )
        self._config = config or GitHubConfig()
        self._client_factory = client_factory or _default_client_factory(self._config)
        self._strict = strict
        self._on_group_failure = on_group_failure
        self._on_repository_failure = on_repository_failure
        self._app_slug = app_slug
        self._app_id = app_id

    # -- installations / repositories ------------------------------------

    def fetch_installations(self) -> Effect[list[Installation]]:
        async def run() -> list[Installation]:
            if not self._access_token:
                return []
            async with self._client_factory(self._access_token) as client:
                raw = await client.list_user_installations()
            installations = [transform_installation(item) for item in raw]
            if self._app_slug:
                installations = [i for i in installations if i.app_slug == self._app_slug]
            if self._app_id is not None:
                installations = [i for i in installations if i.app_id == self._app_id]
            logger.debug("Found %d app installation(s)", len(installations))
            return installations

        return io_effect(run)

    def fetch_repositories(
        self,
        include_private: bool = True,
        organizations: Sequence[str] = (),
    ) -> Effect[list[Repository]]:
        """Repositories the credentials can see, optionally limited to some owners."""
        async def run() -> list[Repository]:
            tokens = [
                self._installation_tokens[i]
                for i in self._selected_ids
                if i in self._installation_tokens
            ]
            if tokens:
                pages = await asyncio.gather(*(self._installation_repos(t) for t in tokens))
                raw = [repo for page in pages for repo in page]
            elif self._access_token:
                async with self._client_factory(self._access_token) as client:
                    raw = await client.list_user_repos(include_private=include_private)
            else:
                return []
            repositories = unique_by(lambda r: r.full_name)(
                transform_repository(item) for item in raw
            )
            if not include_private:
                repositories = [r for r in repositories if not r.private]
            return filter_repositories(repositories, organizations=organizations)

        return io_effect(run)

    async def _installation_repos(self, token: str) -> list[dict[str, Any]]:
        async with self._client_factory(token) as client:
            return await client.list_installation_repos()

    async def _resolve_installations(self) -> list[Installation]:
        if self._installations is not None:
            return self._installations
        if not self._selected_ids or not self._access_token:
            return []
        try:
            return await self.fetch_installations()()
        except Exception as exc:
            logger.warning("Failed to list installations, using OAuth only: %s", exc)
            return []

    # -- commits ---------------------------------------------------------

    def fetch_commits(
        self,
        repositories: Sequence[str],
        date_range: DateRange,
        branch: str | None = None,
    ) -> Effect[list[CommitData]]:
        repositories = list(repositories)

        async def run() -> list[CommitData]:
            since = _isoformat(date_range.start)
            until = _isoformat(date_range.end)
            installations = await self._resolve_installations()
            groups = map_repositories_to_installations(
                repositories, installations, self._selected_ids
            )

            keys: list[str] = []
            tasks = []
            for key, repos in groups.items():
                if not repos:
                    continue
                token = self._token_for(key)
                if token is None:
                    logger.warning(
                        "No credentials for %d repo(s) in group %s, skipping", len(repos), key
                    )
                    continue
                keys.append(key)
                tasks.append(self._fetch_group(key, token, repos, since, until, branch))

            logger.debug(
                "Fetching %d repo(s) in %d group(s) (%s..%s)",
                len(repositories),
                len(tasks),
                since,
                until,
            )
            results = await asyncio.gather(*tasks, return_exceptions=True)

            commits: list[CommitData] = []
            for key, result in zip(keys, results):
                if isinstance(result, Exception):
                    if self._strict:
                        raise result
                    logger.warning("Error fetching commits for group %s: %s", key, result)
                    if self._on_group_failure is not None:
                        self._on_group_failure(key, result)
                    continue
                if isinstance(result, BaseException):
                    raise result
                commits.extend(result)
            return commits

        return io_effect(run)

    def _token_for(self, key: str) -> str | None:
        if key == OAUTH_GROUP:
            return self._access_token
        return self._installation_tokens.get(int(key))

    async def _fetch_group(
        self,
        key: str,
        token: str,
        repositories: Sequence[str],
        since: str,
        until: str,
        branch: str | None,
    ) -> list[CommitData]:
        batch_size = (
            self._config.oauth_batch_size if key == OAUTH_GROUP else self._config.app_batch_size
        )
        commits: list[CommitData] = []
        async with self._client_factory(token) as client:
            for number, batch in enumerate(chunk(batch_size)(repositories), start=1):
                logger.debug("Group %s: batch %d %s", key, number, batch)
                pages = await asyncio.gather(
                    *(
                        client.list_commits(
                            *full_name.split("/", 1), since=since, until=until, sha=branch
                        )
                        for full_name in batch
                    ),
                    return_exceptions=True,
                )
                for full_name, page in zip(batch, pages):
                    if isinstance(page, (httpx.HTTPStatusError, httpx.TransportError)):
                        if self._strict:
                            raise page
                        logger.warning("Error fetching commits for %s: %s", full_name, page)
                        if self._on_repository_failure is not None:
                            self._on_repository_failure(full_name, page)
                        continue
                    if isinstance(page, BaseException):
                        raise page
                    commits.extend(
                        transform_github_commit(item, repository=full_name) for item in page
                    )
        return commits
