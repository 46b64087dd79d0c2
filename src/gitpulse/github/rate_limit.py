"""GitHub API rate limit monitoring."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

logger = logging.getLogger(__name__)

MAX_WAIT_SECONDS = 3600


class RateLimitMonitor:
    """Tracks the remaining request budget from GitHub response headers.

    Once the budget drops to ``threshold`` the next request waits until the
    reported reset time.
    """

    def __init__(self, threshold: int = 10) -> None:
        self._remaining: int | None = None
        self._reset_at: float | None = None
        self._threshold = threshold

    @property
    def remaining(self) -> int | None:
        return self._remaining

    def update(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset_at = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._remaining = int(remaining)
        if reset_at is not None:
            self._reset_at = float(reset_at)

    def should_wait(self) -> bool:
        return (
            self._remaining is not None
            and self._remaining <= self._threshold
            and self._reset_at is not None
        )

    async def wait_if_needed(self) -> None:
        if not self.should_wait():
            return
        wait_seconds = min(max(0, self._reset_at - time.time()) + 1, MAX_WAIT_SECONDS)
        logger.warning(
            "Rate limit nearly exhausted (%d left), sleeping %.0fs",
            self._remaining,
            wait_seconds,
        )
        await asyncio.sleep(wait_seconds)
