"""Deferred computations.

An Effect is a zero-argument callable that returns an awaitable. Building one,
or composing several, performs no I/O; only calling the outermost Effect and
awaiting the result does. That separation lets the workflow validate a request
and short-circuit before any network call is issued.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Generic, TypeVar

from .result import ensure_exception

T = TypeVar("T")
U = TypeVar("U")

EFFECT = "Effect"
IO_EFFECT = "IOEffect"
LOG_EFFECT = "LogEffect"
TIME_EFFECT = "TimeEffect"


class Effect(Generic[T]):
    """A description of async work; ``await eff()`` runs it."""

    __slots__ = ("_fn", "tag")

    def __init__(self, fn: Callable[[], Awaitable[T]], tag: str = EFFECT) -> None:
        self._fn = fn
        self.tag = tag

    def __call__(self) -> Awaitable[T]:
        return self._fn()

    def __repr__(self) -> str:
        return f"<{self.tag} {getattr(self._fn, '__qualname__', self._fn)!r}>"


def effect(fn: Callable[[], Awaitable[T]]) -> Effect[T]:
    return Effect(fn)


def io_effect(fn: Callable[[], Awaitable[T]]) -> Effect[T]:
    return Effect(fn, IO_EFFECT)


def log_effect(fn: Callable[[], Awaitable[None]]) -> Effect[None]:
    return Effect(fn, LOG_EFFECT)


def time_effect(fn: Callable[[], Awaitable[T]]) -> Effect[T]:
    return Effect(fn, TIME_EFFECT)


def succeed(value: T) -> Effect[T]:
    async def run() -> T:
        return value

    return Effect(run)


def fail(error: BaseException) -> Effect[Any]:
    async def run() -> Any:
        raise error

    return Effect(run)


def map_effect(fn: Callable[[T], U]) -> Callable[[Effect[T]], Effect[U]]:
    def wrap(eff: Effect[T]) -> Effect[U]:
        async def run() -> U:
            return fn(await eff())

        return Effect(run)

    return wrap


def flat_map_effect(fn: Callable[[T], Effect[U]]) -> Callable[[Effect[T]], Effect[U]]:
    def wrap(eff: Effect[T]) -> Effect[U]:
        async def run() -> U:
            value = await eff()
            return await fn(value)()

        return Effect(run)

    return wrap


def catch_effect(
    handler: Callable[[BaseException], T],
) -> Callable[[Effect[T]], Effect[T]]:
    """Intercept a failure; ``handler`` may return a fallback or raise."""

    def wrap(eff: Effect[T]) -> Effect[T]:
        async def run() -> T:
            try:
                return await eff()
            except Exception as exc:
                return handler(exc)

        return Effect(run, eff.tag)

    return wrap


def tap_effect(
    side_effect: Callable[[T], Effect[Any]],
) -> Callable[[Effect[T]], Effect[T]]:
    def wrap(eff: Effect[T]) -> Effect[T]:
        async def run() -> T:
            value = await eff()
            await side_effect(value)()
            return value

        return Effect(run, eff.tag)

    return wrap


def zip_right(first: Effect[Any]) -> Callable[[Effect[U]], Effect[U]]:
    def wrap(second: Effect[U]) -> Effect[U]:
        async def run() -> U:
            await first()
            return await second()

        return Effect(run)

    return wrap


def zip_left(first: Effect[T]) -> Callable[[Effect[Any]], Effect[T]]:
    def wrap(second: Effect[Any]) -> Effect[T]:
        async def run() -> T:
            value = await first()
            await second()
            return value

        return Effect(run)

    return wrap


def parallel(effects: Sequence[Effect[T]]) -> Effect[list[T]]:
    """Run concurrently; results keep the order of ``effects``."""

    async def run() -> list[T]:
        return list(await asyncio.gather(*(eff() for eff in effects)))

    return Effect(run)


def sequence(effects: Sequence[Effect[T]]) -> Effect[list[T]]:
    async def run() -> list[T]:
        results: list[T] = []
        for eff in effects:
            results.append(await eff())
        return results

    return Effect(run)


def with_timeout(seconds: float) -> Callable[[Effect[T]], Effect[T]]:
    def wrap(eff: Effect[T]) -> Effect[T]:
        async def run() -> T:
            try:
                return await asyncio.wait_for(eff(), timeout=seconds)
            except asyncio.TimeoutError as exc:
                raise TimeoutError(f"Effect timeout after {seconds}s") from exc

        return Effect(run, eff.tag)

    return wrap


def with_retry(max_attempts: int, delay: float = 1.0) -> Callable[[Effect[T]], Effect[T]]:
    """Re-run a failing Effect, sleeping ``delay * attempt`` between tries."""
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    def wrap(eff: Effect[T]) -> Effect[T]:
        async def run() -> T:
            last_error: BaseException | None = None
            for attempt in range(1, max_attempts + 1):
                try:
                    return await eff()
                except Exception as exc:
                    last_error = ensure_exception(exc)
                    if attempt == max_attempts:
                        break
                    await asyncio.sleep(delay * attempt)
            assert last_error is not None
            raise last_error

        return Effect(run, eff.tag)

    return wrap


def is_effect(value: Any) -> bool:
    return isinstance(value, Effect)


def is_io_effect(value: Any) -> bool:
    return isinstance(value, Effect) and value.tag == IO_EFFECT
