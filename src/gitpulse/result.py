"""Success/failure container for error propagation without exceptions.

Every combinator here is curried: ``map(fn)(result)``. None of them raise;
failures flow through unchanged until someone folds the Result.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure(Generic[E]):
    error: E

    @property
    def success(self) -> bool:
        return False


Result = Union[Success[T], Failure[E]]


def success(data: T) -> Success[T]:
    return Success(data)


def failure(error: E) -> Failure[E]:
    return Failure(error)


def ensure_exception(value: Any) -> BaseException:
    """Coerce anything raised or rejected into an exception instance."""
    if isinstance(value, BaseException):
        return value
    return Exception(str(value))


def map(fn: Callable[[T], U]) -> Callable[[Result], Result]:
    def apply(result: Result) -> Result:
        return Success(fn(result.data)) if result.success else result

    return apply


def flat_map(fn: Callable[[T], Result]) -> Callable[[Result], Result]:
    def apply(result: Result) -> Result:
        return fn(result.data) if result.success else result

    return apply


def map_error(fn: Callable[[E], F]) -> Callable[[Result], Result]:
    def apply(result: Result) -> Result:
        return result if result.success else Failure(fn(result.error))

    return apply


def get_or_else(default: T) -> Callable[[Result], T]:
    def apply(result: Result) -> T:
        return result.data if result.success else default

    return apply


def get_or_else_with(fn: Callable[[], T]) -> Callable[[Result], T]:
    def apply(result: Result) -> T:
        return result.data if result.success else fn()

    return apply


def fold(
    on_success: Callable[[T], U], on_failure: Callable[[E], U]
) -> Callable[[Result], U]:
    """Collapse either branch into one value, e.g. at a workflow boundary."""

    def apply(result: Result) -> U:
        if result.success:
            return on_success(result.data)
        return on_failure(result.error)

    return apply


def is_success(result: Result) -> bool:
    return isinstance(result, Success)


def is_failure(result: Result) -> bool:
    return isinstance(result, Failure)


def tap(fn: Callable[[T], Any]) -> Callable[[Result], Result]:
    def apply(result: Result) -> Result:
        if result.success:
            fn(result.data)
        return result

    return apply


def tap_error(fn: Callable[[E], Any]) -> Callable[[Result], Result]:
    def apply(result: Result) -> Result:
        if not result.success:
            fn(result.error)
        return result

    return apply


def combine(*results: Result) -> Result:
    """Succeed with a tuple of values only if every result succeeded.

    Failures are not short-circuited: all of their messages are joined with
    ``"; "`` into a single exception.
    """
    values: list[Any] = []
    errors: list[Any] = []
    for result in results:
        if result.success:
            values.append(result.data)
        else:
            errors.append(result.error)
    if errors:
        message = "; ".join(str(ensure_exception(e)) for e in errors)
        return Failure(Exception(message))
    return Success(tuple(values))


def try_catch(fn: Callable[..., T]) -> Callable[..., Result]:
    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Result:
        try:
            return Success(fn(*args, **kwargs))
        except Exception as exc:
            return Failure(exc)

    return wrapper


def try_catch_async(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Result]]:
    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Result:
        try:
            return Success(await fn(*args, **kwargs))
        except Exception as exc:
            return Failure(exc)

    return wrapper


async def from_awaitable(awaitable: Awaitable[T]) -> Result:
    try:
        return Success(await awaitable)
    except Exception as exc:
        return Failure(exc)
