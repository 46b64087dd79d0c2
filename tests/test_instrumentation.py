"""Tests for Effect logging and correlation ids."""

from __future__ import annotations

import logging

import pytest

from gitpulse.effects import LOG_EFFECT, fail, io_effect, succeed
from gitpulse.instrumentation import (
    create_logging_context,
    get_current_correlation_id,
    has_logging_context,
    log_error,
    log_info,
    with_correlation_id,
    with_logging,
)


@pytest.mark.asyncio
async def test_with_logging_records_start_and_completion(caplog):
    caplog.set_level(logging.INFO, logger="gitpulse.instrumentation")
    assert await with_logging("fetch")(succeed(3))() == 3

    messages = [r.getMessage() for r in caplog.records]
    assert any("fetch started" in m for m in messages)
    assert any("fetch completed in" in m for m in messages)
    completed = caplog.records[-1]
    assert completed.operation == "fetch"
    assert isinstance(completed.duration_ms, int)


@pytest.mark.asyncio
async def test_with_logging_records_failure_and_reraises(caplog):
    caplog.set_level(logging.INFO, logger="gitpulse.instrumentation")
    with pytest.raises(RuntimeError):
        await with_logging("fetch")(fail(RuntimeError("down")))()

    failed = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(failed) == 1
    assert "RuntimeError: down" in failed[0].getMessage()


@pytest.mark.asyncio
async def test_with_logging_keeps_effect_tag():
    async def work():
        return 1

    wrapped = with_logging("io")(io_effect(work))
    assert wrapped.tag == io_effect(work).tag


@pytest.mark.asyncio
async def test_nested_stages_share_correlation_id(caplog):
    caplog.set_level(logging.INFO, logger="gitpulse.instrumentation")
    context = create_logging_context("workflow", correlation_id="cid-123")

    seen = []

    async def inner():
        seen.append(get_current_correlation_id())
        return "x"

    eff = with_correlation_id(context)(
        with_logging("outer")(with_logging("inner")(io_effect(inner)))
    )
    await eff()

    assert seen == ["cid-123"]
    assert {r.correlation_id for r in caplog.records} == {"cid-123"}
    assert not has_logging_context()


@pytest.mark.asyncio
async def test_context_is_reset_after_failure():
    context = create_logging_context("workflow")
    with pytest.raises(ValueError):
        await with_correlation_id(context)(fail(ValueError("x")))()
    assert get_current_correlation_id() is None


@pytest.mark.asyncio
async def test_log_info_and_log_error(caplog):
    caplog.set_level(logging.INFO, logger="gitpulse.instrumentation")
    info = log_info("hello", {"n": 1})
    assert info.tag == LOG_EFFECT
    await info()
    await log_error("bad", KeyError("k"))()

    assert caplog.records[0].levelno == logging.INFO
    assert "hello" in caplog.records[0].getMessage()
    assert caplog.records[1].levelno == logging.ERROR
    assert "KeyError" in caplog.records[1].getMessage()


def test_correlation_ids_are_unique():
    first = create_logging_context("a")
    second = create_logging_context("a")
    assert first.correlation_id != second.correlation_id
