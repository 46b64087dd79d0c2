"""Structured logging for Effects, with a correlation id per workflow run.

Logging is applied by wrapping an Effect, never from inside the pure
functions it composes.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, TypeVar

from .effects import LOG_EFFECT, Effect

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LoggingContext:
    correlation_id: str
    operation_name: str
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    parent: LoggingContext | None = None


_current_context: ContextVar[LoggingContext | None] = ContextVar(
    "gitpulse_logging_context", default=None
)


def create_correlation_id() -> str:
    return str(uuid.uuid4())


def create_logging_context(
    operation_name: str,
    correlation_id: str | None = None,
    parent: LoggingContext | None = None,
) -> LoggingContext:
    return LoggingContext(
        correlation_id=correlation_id or create_correlation_id(),
        operation_name=operation_name,
        parent=parent,
    )


def get_current_correlation_id() -> str | None:
    context = _current_context.get()
    return context.correlation_id if context else None


def has_logging_context() -> bool:
    return _current_context.get() is not None


def _extra(context: LoggingContext, **fields: Any) -> dict[str, Any]:
    return {
        "correlation_id": context.correlation_id,
        "operation": context.operation_name,
        **fields,
    }


def with_logging(operation_name: str) -> Callable[[Effect[T]], Effect[T]]:
    """Log start, completion (with duration) and failure of an Effect.

    The wrapped Effect runs inside a context carrying the correlation id, so
    nested ``with_logging`` layers share it.
    """

    def wrap(eff: Effect[T]) -> Effect[T]:
        async def run() -> T:
            current = _current_context.get()
            context = (
                replace(current, operation_name=operation_name)
                if current is not None
                else create_logging_context(operation_name)
            )
            token = _current_context.set(context)
            started = time.perf_counter()
            logger.info(
                "[%s] %s started (%s)",
                context.correlation_id,
                operation_name,
                eff.tag,
                extra=_extra(context, effect_type=eff.tag),
            )
            try:
                value = await eff()
            except Exception as exc:
                duration_ms = round((time.perf_counter() - started) * 1000)
                logger.error(
                    "[%s] %s failed after %dms: %s: %s",
                    context.correlation_id,
                    operation_name,
                    duration_ms,
                    type(exc).__name__,
                    exc,
                    extra=_extra(context, duration_ms=duration_ms),
                )
                raise
            finally:
                _current_context.reset(token)
            duration_ms = round((time.perf_counter() - started) * 1000)
            logger.info(
                "[%s] %s completed in %dms",
                context.correlation_id,
                operation_name,
                duration_ms,
                extra=_extra(context, duration_ms=duration_ms),
            )
            return value

        return Effect(run, eff.tag)

    return wrap


def with_correlation_id(context: LoggingContext) -> Callable[[Effect[T]], Effect[T]]:
    def wrap(eff: Effect[T]) -> Effect[T]:
        async def run() -> T:
            token = _current_context.set(context)
            try:
                return await eff()
            finally:
                _current_context.reset(token)

        return Effect(run, eff.tag)

    return wrap


def log_info(message: str, data: dict[str, Any] | None = None) -> Effect[None]:
    async def run() -> None:
        context = _current_context.get()
        if context is None:
            logger.info("%s %s", message, data or "")
            return
        logger.info(
            "[%s] %s: %s %s",
            context.correlation_id,
            context.operation_name,
            message,
            data or "",
            extra=_extra(context),
        )

    return Effect(run, LOG_EFFECT)


def log_error(
    message: str,
    error: BaseException | None = None,
    data: dict[str, Any] | None = None,
) -> Effect[None]:
    async def run() -> None:
        context = _current_context.get()
        detail = f"{type(error).__name__}: {error}" if error is not None else ""
        if context is None:
            logger.error("%s %s %s", message, detail, data or "")
            return
        logger.error(
            "[%s] %s: %s %s %s",
            context.correlation_id,
            context.operation_name,
            message,
            detail,
            data or "",
            extra=_extra(context),
        )

    return Effect(run, LOG_EFFECT)
