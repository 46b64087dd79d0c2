"""Tests for the functional helpers."""

from __future__ import annotations

import pytest

from gitpulse import functional as F


def test_map_then_inverse_round_trips():
    double = F.map(lambda x: x * 2)
    halve = F.map(lambda x: x // 2)
    items = [2, 4, 6]
    assert halve(double(items)) == [2, 4, 6]
    assert items == [2, 4, 6]


def test_filter():
    assert F.filter(lambda x: x > 1)([1, 2, 3]) == [2, 3]


def test_sort_by_is_stable_and_copies():
    items = [("b", 1), ("a", 2), ("c", 1)]
    ordered = F.sort_by(lambda x, y: x[1] - y[1])(items)
    assert ordered == [("b", 1), ("c", 1), ("a", 2)]
    assert items == [("b", 1), ("a", 2), ("c", 1)]


def test_group_by_keeps_first_seen_key_order():
    groups = F.group_by(lambda w: w[0])(["beta", "alpha", "bravo", "apple"])
    assert list(groups) == ["b", "a"]
    assert groups["b"] == ["beta", "bravo"]


def test_unique_by_keeps_first_occurrence():
    items = [{"value": "a", "order": 1}, {"value": "a", "order": 3}]
    assert F.unique_by(lambda i: i["value"])(items) == [{"value": "a", "order": 1}]


def test_partition():
    evens, odds = F.partition(lambda x: x % 2 == 0)([1, 2, 3, 4, 5])
    assert evens == [2, 4]
    assert odds == [1, 3, 5]


def test_chunk():
    assert F.chunk(2)([1, 2, 3, 4, 5]) == [[1, 2], [3, 4], [5]]
    assert F.chunk(3)([]) == []


def test_chunk_rejects_non_positive_size():
    with pytest.raises(ValueError):
        F.chunk(0)


def test_take_and_skip_are_bounds_safe():
    assert F.take(2)([1, 2, 3]) == [1, 2]
    assert F.take(10)([1]) == [1]
    assert F.take(-1)([1, 2]) == []
    assert F.skip(1)([1, 2, 3]) == [2, 3]
    assert F.skip(5)([1, 2]) == []


def test_pipe_and_compose():
    inc = lambda x: x + 1
    dbl = lambda x: x * 2
    assert F.pipe(3, inc, dbl) == 8
    assert F.compose(inc, dbl)(3) == 7
    assert F.pipe(3) == 3


def test_prop_pick_omit():
    record = {"a": 1, "b": 2, "c": 3}
    assert F.prop("a")(record) == 1
    assert F.pick(["a", "z"])(record) == {"a": 1}
    assert F.omit(["a"])(record) == {"b": 2, "c": 3}


def test_identity_constant_emptiness():
    assert F.identity(4) == 4
    assert F.constant("x")(1, 2, k=3) == "x"
    assert F.is_empty([])
    assert F.is_not_empty([0])
