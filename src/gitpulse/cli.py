"""CLI entrypoint for gitpulse."""

from __future__ import annotations

import asyncio
import logging
import re
import sys
from datetime import datetime, timedelta, timezone

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .errors import SummaryError


_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _parse_relative_date(value: str, now: datetime | None = None) -> str | None:
    """Parse relative date like 7d, 2w, 3m, 1y into a UTC timestamp.

    The time of day is kept, so ``1y`` spans exactly 365 days up to ``now``.
    """
    match = re.match(r"^(\d+)([dwmy])$", value)
    if not match:
        return None
    amount = int(match.group(1))
    unit = match.group(2)
    if unit == "d":
        delta = timedelta(days=amount)
    elif unit == "w":
        delta = timedelta(weeks=amount)
    elif unit == "m":
        delta = timedelta(days=amount * 30)
    else:  # unit == "y"
        delta = timedelta(days=amount * 365)
    now = now or datetime.now(timezone.utc)
    return (now.replace(microsecond=0) - delta).strftime(_TIMESTAMP_FORMAT)


def _resolve_date(value: str | None, now: datetime | None = None) -> str | None:
    """Resolve a date value that may be relative (7d, 30d, 3m, 1y) or absolute (YYYY-MM-DD)."""
    if value is None:
        return None
    parsed = _parse_relative_date(value, now)
    if parsed is not None:
        return parsed
    return value


def _range_bounds(since: str, until: str | None, now: datetime) -> tuple[str, str]:
    """Turn resolved dates into ISO timestamps; the end never passes ``now``.

    Plain dates cover whole days; timestamps from relative dates are kept.
    """
    now_iso = now.replace(microsecond=0).strftime(_TIMESTAMP_FORMAT)
    start = since if "T" in since else f"{since}T00:00:00Z"
    if until is None or until >= now.strftime("%Y-%m-%d"):
        return start, now_iso
    return start, until if "T" in until else f"{until}T23:59:59Z"


def _parse_installation_tokens(values: tuple[str, ...]) -> dict[int, str]:
    tokens: dict[int, str] = {}
    for value in values:
        installation_id, sep, token = value.partition("=")
        if not sep or not installation_id.strip().isdigit() or not token:
            raise click.BadParameter(
                f"expected ID=TOKEN, got {value!r}", param_hint="--installation-token"
            )
        tokens[int(installation_id)] = token
    return tokens


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # keep transport chatter out of --verbose output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@click.command()
@click.argument("repositories", nargs=-1, required=True)
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    show_envvar=True,
    help="GitHub OAuth or personal access token",
)
@click.option(
    "--installation-token",
    "installation_tokens",
    multiple=True,
    metavar="ID=TOKEN",
    help="GitHub App installation token for installation ID (repeatable)",
)
@click.option(
    "--since",
    default="30d",
    show_default=True,
    help="Start date (YYYY-MM-DD or relative: 7d, 2w, 3m, 1y)",
)
@click.option(
    "--until",
    default=None,
    help="End date (YYYY-MM-DD or relative: 7d, 2w, 3m, 1y); defaults to now",
)
@click.option(
    "--user",
    "users",
    multiple=True,
    help="Only count commits by this login; 'me' is the token's owner (repeatable)",
)
@click.option("--branch", default=None, help="Branch to read commits from")
@click.option(
    "--current-user",
    envvar="GITPULSE_CURRENT_USER",
    default=None,
    show_envvar=True,
    help="Login that 'me' refers to (looked up from the token when omitted)",
)
@click.option(
    "--top-n",
    default=10,
    show_default=True,
    help="Number of top authors and repositories to show",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "csv"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format (csv exports commits per author only)",
)
@click.option(
    "--output",
    "output_file",
    default=None,
    type=click.Path(),
    help="Save output to file instead of stdout",
)
@click.option("--no-cache", is_flag=True, default=False, help="Disable HTTP response caching")
@click.option(
    "--api-url",
    envvar="GITPULSE_API_URL",
    default=None,
    help="GitHub Enterprise API base URL",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds allowed for fetching commits",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Fail when any credential group fails instead of reporting partial results",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.version_option(version=__version__)
def main(
    repositories: tuple[str, ...],
    token: str | None,
    installation_tokens: tuple[str, ...],
    since: str,
    until: str | None,
    users: tuple[str, ...],
    branch: str | None,
    current_user: str | None,
    top_n: int,
    output_format: str,
    output_file: str | None,
    no_cache: bool,
    api_url: str | None,
    timeout: float | None,
    strict: bool,
    verbose: bool,
) -> None:
    """Summarize commit activity across GitHub repositories.

    \b
    REPOSITORIES are owner/name pairs:
      gitpulse myorg/api myorg/web

    \b
    Examples:
      gitpulse myorg/api --since 2w
      gitpulse myorg/api myorg/web --user me --format json --output summary.json
      gitpulse myorg/api --since 2024-01-01 --until 2024-03-31 --branch main
      gitpulse myorg/api --installation-token 1234=ghs_xxx
    """
    _setup_logging(verbose)

    tokens = _parse_installation_tokens(installation_tokens)
    if not token and not tokens:
        raise click.UsageError("Provide --token (or $GITHUB_TOKEN) or --installation-token.")

    now = datetime.now(timezone.utc)
    start, end = _range_bounds(_resolve_date(since, now), _resolve_date(until, now), now)

    from .orchestrator import run

    try:
        asyncio.run(
            run(
                repositories=list(repositories),
                token=token,
                since=start,
                until=end,
                users=list(users) or None,
                branch=branch,
                installation_tokens=tokens,
                current_user=current_user,
                top_n=top_n,
                output_format=output_format,
                output_file=output_file,
                no_cache=no_cache,
                api_url=api_url,
                strict=strict,
                timeout=timeout,
            )
        )
    except SummaryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status == 404:
            click.echo(f"Error: {exc.request.url.path} not found. Check the repository names.", err=True)
        elif status in (401, 403):
            click.echo("Error: Authentication failed. Check your --token or $GITHUB_TOKEN.", err=True)
        else:
            click.echo(f"Error: GitHub API returned {status}.", err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
