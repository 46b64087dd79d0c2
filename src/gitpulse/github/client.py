"""GitHub REST API client."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx

from ..cache import DEFAULT_TTL, FileCache
from ..config import DEFAULT_CACHE_DIR
from .rate_limit import RateLimitMonitor

logger = logging.getLogger(__name__)

BASE_URL = "https://api.github.com"


class GitHubClient:
    """Async GitHub REST API client with pagination and rate limit support."""

    def __init__(
        self,
        token: str,
        concurrency: int = 5,
        no_cache: bool = False,
        base_url: str | None = None,
        timeout: float = 30.0,
        per_page: int = 100,
        rate_limit_threshold: int = 10,
        cache_dir: Path = DEFAULT_CACHE_DIR,
        cache_ttl: int = DEFAULT_TTL,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._client = httpx.AsyncClient(
            base_url=base_url or BASE_URL,
            headers=headers,
            timeout=timeout,
        )
        self._per_page = per_page
        self._rate_limit = RateLimitMonitor(threshold=rate_limit_threshold)
        self._semaphore = asyncio.Semaphore(concurrency)
        self._cache: FileCache | None = (
            None
            if no_cache
            else FileCache(cache_dir, ttl=cache_ttl, scope=FileCache.scope_for_token(token))
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _get(
        self, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        async with self._semaphore:
            await self._rate_limit.wait_if_needed()
            response = await self._client.get(url, params=params)
            self._rate_limit.update(response)
            response.raise_for_status()
            return response

    async def _cached_get_json(
        self, url: str, params: dict[str, Any] | None = None
    ) -> Any:
        """GET with file cache support. Returns parsed JSON."""
        if self._cache is not None:
            cached = self._cache.get(url, params)
            if cached is not None:
                return cached
        response = await self._get(url, params)
        data = response.json()
        if self._cache is not None:
            self._cache.set(url, params, data)
        return data

    async def _cached_paginate(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
    ) -> list[Any]:
        """Paginate with file cache support."""
        cache_params = dict(params or {})
        if self._cache is not None:
            cached = self._cache.get(url, cache_params)
            if cached is not None:
                return cached

        results = await self._paginate(url, params, items_key)
        if self._cache is not None:
            self._cache.set(url, cache_params, results)
        return results

    async def _paginate(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
    ) -> list[Any]:
        """Follow Link headers; ``items_key`` unwraps ``{"<key>": [...]}`` pages."""
        results: list[Any] = []
        params = dict(params or {})
        params.setdefault("per_page", self._per_page)
        next_url: str | None = url

        while next_url is not None:
            response = await self._get(next_url, params)
            data = response.json()
            if items_key is not None and isinstance(data, dict):
                data = data.get(items_key, [])
            if isinstance(data, list):
                results.extend(data)
            else:
                results.append(data)

            # Follow Link header for next page
            next_url = None
            link_header = response.headers.get("Link", "")
            for part in link_header.split(","):
                if 'rel="next"' in part:
                    next_url = part.split(";")[0].strip().strip("<>")
                    params = {}  # URL already contains params
                    break

        return results

    async def get_authenticated_user(self) -> dict[str, Any]:
        """The account behind the token (``/user``)."""
        response = await self._get("/user")
        return response.json()

    async def list_commits(
        self,
        owner: str,
        repo: str,
        since: str | None = None,
        until: str | None = None,
        sha: str | None = None,
    ) -> list[dict[str, Any]]:
        """List commits for a repository, optionally on one branch."""
        params: dict[str, Any] = {}
        if since:
            params["since"] = since
        if until:
            params["until"] = until
        if sha:
            params["sha"] = sha
        try:
            return await self._cached_paginate(
                f"/repos/{owner}/{repo}/commits", params=params
            )
        except httpx.HTTPStatusError as exc:
            # 409: the repository is empty
            if exc.response.status_code == 409:
                logger.debug("%s/%s: empty repository", owner, repo)
                return []
            raise

    async def list_user_installations(self) -> list[dict[str, Any]]:
        """App installations the OAuth user can access."""
        return await self._cached_paginate(
            "/user/installations", items_key="installations"
        )

    async def list_user_repos(self, include_private: bool = True) -> list[dict[str, Any]]:
        params = {
            "visibility": "all" if include_private else "public",
            "affiliation": "owner,collaborator,organization_member",
            "sort": "updated",
        }
        return await self._cached_paginate("/user/repos", params=params)

    async def list_installation_repos(self) -> list[dict[str, Any]]:
        """Repositories visible to an installation token."""
        return await self._cached_paginate(
            "/installation/repositories", items_key="repositories"
        )
