"""Tests for the rate limit monitor."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from gitpulse.github.rate_limit import RateLimitMonitor


def _response(headers: dict) -> MagicMock:
    resp = MagicMock(spec=httpx.Response)
    resp.headers = headers
    return resp


def test_update_reads_headers():
    monitor = RateLimitMonitor()
    monitor.update(_response({"X-RateLimit-Remaining": "42", "X-RateLimit-Reset": "1700000000"}))
    assert monitor.remaining == 42
    assert monitor.should_wait() is False


def test_update_without_headers():
    monitor = RateLimitMonitor()
    monitor.update(_response({}))
    assert monitor.remaining is None
    assert monitor.should_wait() is False


def test_should_wait_at_threshold():
    monitor = RateLimitMonitor(threshold=10)
    monitor.update(
        _response({"X-RateLimit-Remaining": "10", "X-RateLimit-Reset": str(time.time() + 5)})
    )
    assert monitor.should_wait() is True


@pytest.mark.asyncio
async def test_wait_if_needed_sleeps_until_reset():
    monitor = RateLimitMonitor(threshold=10)
    monitor.update(
        _response({"X-RateLimit-Remaining": "1", "X-RateLimit-Reset": str(time.time() + 5)})
    )
    with patch("gitpulse.github.rate_limit.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await monitor.wait_if_needed()
    sleep.assert_awaited_once()
    waited = sleep.await_args.args[0]
    assert 4 <= waited <= 7


@pytest.mark.asyncio
async def test_wait_if_needed_caps_wait():
    monitor = RateLimitMonitor(threshold=10)
    monitor.update(
        _response({"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(time.time() + 99999)})
    )
    with patch("gitpulse.github.rate_limit.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await monitor.wait_if_needed()
    assert sleep.await_args.args[0] == 3600


@pytest.mark.asyncio
async def test_wait_if_needed_noop_with_budget():
    monitor = RateLimitMonitor(threshold=10)
    monitor.update(
        _response({"X-RateLimit-Remaining": "4000", "X-RateLimit-Reset": str(time.time() + 5)})
    )
    with patch("gitpulse.github.rate_limit.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await monitor.wait_if_needed()
    sleep.assert_not_awaited()
