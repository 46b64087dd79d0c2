"""Curried, non-mutating combinators used to build the statistics pipeline.

Each helper takes its configuration first and the data second, so they slot
straight into ``pipe``::

    pipe(commits, filter(is_recent), group_by(lambda c: c.author))
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from functools import cmp_to_key, reduce
from typing import Any, TypeVar

T = TypeVar("T")
U = TypeVar("U")
K = TypeVar("K", bound=Hashable)


def pipe(value: Any, *fns: Callable[[Any], Any]) -> Any:
    """Apply ``fns`` left to right: ``pipe(x, f, g) == g(f(x))``."""
    return reduce(lambda acc, fn: fn(acc), fns, value)


def compose(*fns: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Right-to-left composition: ``compose(f, g)(x) == f(g(x))``."""

    def composed(value: Any) -> Any:
        return reduce(lambda acc, fn: fn(acc), reversed(fns), value)

    return composed


def identity(value: T) -> T:
    return value


def constant(value: T) -> Callable[..., T]:
    return lambda *_args, **_kwargs: value


def prop(key: str) -> Callable[[Any], Any]:
    def get(obj: Any) -> Any:
        if isinstance(obj, Mapping):
            return obj[key]
        return getattr(obj, key)

    return get


def pick(keys: Iterable[str]) -> Callable[[Mapping[str, Any]], dict[str, Any]]:
    wanted = list(keys)
    return lambda obj: {k: obj[k] for k in wanted if k in obj}


def omit(keys: Iterable[str]) -> Callable[[Mapping[str, Any]], dict[str, Any]]:
    dropped = set(keys)
    return lambda obj: {k: v for k, v in obj.items() if k not in dropped}


def map(transform: Callable[[T], U]) -> Callable[[Iterable[T]], list[U]]:
    return lambda items: [transform(item) for item in items]


def filter(predicate: Callable[[T], bool]) -> Callable[[Iterable[T]], list[T]]:
    return lambda items: [item for item in items if predicate(item)]


def sort_by(compare: Callable[[T, T], int]) -> Callable[[Iterable[T]], list[T]]:
    """Copy, then stable-sort with a ``(a, b) -> int`` comparator."""
    key = cmp_to_key(compare)
    return lambda items: sorted(items, key=key)


def group_by(key_fn: Callable[[T], K]) -> Callable[[Iterable[T]], dict[K, list[T]]]:
    """Group into a dict of lists; keys keep first-seen order."""

    def apply(items: Iterable[T]) -> dict[K, list[T]]:
        groups: dict[K, list[T]] = {}
        for item in items:
            groups.setdefault(key_fn(item), []).append(item)
        return groups

    return apply


def unique_by(key_fn: Callable[[T], Hashable]) -> Callable[[Iterable[T]], list[T]]:
    """Drop later duplicates; the first occurrence per key wins."""

    def apply(items: Iterable[T]) -> list[T]:
        seen: set[Hashable] = set()
        unique: list[T] = []
        for item in items:
            key = key_fn(item)
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique

    return apply


def partition(
    predicate: Callable[[T], bool],
) -> Callable[[Iterable[T]], tuple[list[T], list[T]]]:
    def apply(items: Iterable[T]) -> tuple[list[T], list[T]]:
        matching: list[T] = []
        rest: list[T] = []
        for item in items:
            (matching if predicate(item) else rest).append(item)
        return matching, rest

    return apply


def chunk(size: int) -> Callable[[Sequence[T]], list[list[T]]]:
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return lambda items: [list(items[i : i + size]) for i in range(0, len(items), size)]


def take(count: int) -> Callable[[Sequence[T]], list[T]]:
    return lambda items: list(items[: max(count, 0)])


def skip(count: int) -> Callable[[Sequence[T]], list[T]]:
    return lambda items: list(items[max(count, 0) :])


def is_empty(items: Sequence[Any]) -> bool:
    return len(items) == 0


def is_not_empty(items: Sequence[Any]) -> bool:
    return len(items) > 0
