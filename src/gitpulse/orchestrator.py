"""Orchestrator: wires together config, client, provider, workflow, and renderer."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .analysis import ME
from .config import AppConfig, create_config
from .github.client import GitHubClient
from .providers import GitHubDataProvider
from .renderer import render_csv, render_json, render_summary
from .workflow import SummaryServiceConfig, generate_logged_summary, resolve_user_placeholder

logger = logging.getLogger(__name__)

DEFAULT_TOP_AUTHORS = 10


async def resolve_current_user(client_factory, token: str) -> str | None:
    """Login of the account behind ``token``, or None if it cannot be read."""
    try:
        async with client_factory(token) as client:
            user = await client.get_authenticated_user()
    except Exception as exc:
        logger.warning("Could not resolve the current user: %s", exc)
        return None
    return user.get("login")


async def run(
    repositories: list[str],
    token: str | None,
    since: str,
    until: str,
    users: list[str] | None = None,
    branch: str | None = None,
    installation_tokens: Mapping[int, str] | None = None,
    current_user: str | None = None,
    top_n: int | None = None,
    output_format: str = "table",
    output_file: str | None = None,
    no_cache: bool = False,
    api_url: str | None = None,
    strict: bool = False,
    timeout: float | None = None,
    config: AppConfig | None = None,
) -> None:
    """Main pipeline: resolve users, fetch commits, summarize, render.

    ``top_n`` limits both the author and the repository rankings; without it
    the configured repository limit and ten authors are shown.
    """
    config = config or create_config({"github": {"api_url": api_url}} if api_url else None)
    gh = config.github

    def client_factory(client_token: str) -> GitHubClient:
        return GitHubClient(
            client_token,
            concurrency=gh.concurrency,
            no_cache=no_cache,
            base_url=gh.api_url,
            timeout=gh.timeout,
            per_page=gh.per_page,
            rate_limit_threshold=gh.rate_limit_threshold,
            cache_dir=config.cache.directory,
            cache_ttl=config.cache.ttl,
        )

    if users and ME in users and not current_user and token:
        current_user = await resolve_current_user(client_factory, token)

    raw_request = resolve_user_placeholder(
        {
            "repositories": repositories,
            "dateRange": {"start": since, "end": until},
            "users": users or None,
            "branch": branch,
        },
        current_user,
    )

    failed_groups: list[str] = []
    failed_repositories: list[str] = []
    provider = GitHubDataProvider(
        access_token=token,
        installation_tokens=installation_tokens,
        config=gh,
        client_factory=client_factory,
        strict=strict,
        on_group_failure=lambda key, exc: failed_groups.append(key),
        on_repository_failure=lambda name, exc: failed_repositories.append(name),
    )
    service_config = SummaryServiceConfig(
        validation=config.validation,
        top_repositories_limit=top_n or config.summary.top_repositories_limit,
        timeout=timeout if timeout is not None else config.effects.timeout,
        current_user=current_user,
        retry_attempts=config.effects.retry_max_attempts,
        retry_delay=config.effects.retry_delay,
    )

    stats = await generate_logged_summary(raw_request, provider, service_config)()

    if output_format == "json":
        render_json(stats, output_file=output_file)
    elif output_format == "csv":
        render_csv(stats, output_file=output_file)
    else:
        render_summary(
            stats,
            period=(since[:10], until[:10]),
            top_n=top_n or DEFAULT_TOP_AUTHORS,
            failed_groups=list(dict.fromkeys(failed_groups)),
            failed_repositories=list(dict.fromkeys(failed_repositories)),
            output_file=output_file,
        )
