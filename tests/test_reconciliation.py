"""Tests for sorted-merge reconciliation helpers."""

import random
from collections import Counter

import pytest

from docman.entities import Tag
from docman.reconciliation import distinct_sorted, null_first, partition, remove_all


def _naive_difference(items: list, to_remove: list) -> list:
    remaining = Counter(items)
    remaining.subtract(Counter(to_remove))
    return sorted(remaining.elements())


def test_remove_all_of_itself_is_empty() -> None:
    items = [3, 1, 2, 2, 5]

    assert remove_all(items, items) == []


def test_remove_all_with_nothing_to_remove_returns_distinct_sorted() -> None:
    assert remove_all([3, 1, 3, 2], [], distinct=True) == [1, 2, 3]
    assert remove_all([3, 1, 3, 2], []) == [3, 1, 3, 2]


def test_remove_all_keeps_duplicates_of_unmatched_items() -> None:
    assert remove_all(["b", "a", "b", "c"], ["c"]) == ["a", "b", "b"]
    assert remove_all(["b", "a", "b", "c"], ["c"], distinct=True) == ["a", "b"]


def test_remove_all_removes_every_copy_of_a_matched_item() -> None:
    assert remove_all([1, 1, 2], [1]) == [2]


def test_remove_all_matches_naive_reference_without_overlapping_duplicates() -> None:
    rng = random.Random(7)
    for _ in range(50):
        items = [rng.randint(0, 30) for _ in range(rng.randint(0, 40))]
        to_remove = list({rng.randint(0, 30) for _ in range(rng.randint(0, 20))})
        expected = _naive_difference(
            items, [value for value in to_remove for _ in range(items.count(value))]
        )

        assert sorted(remove_all(items, to_remove)) == expected


def test_remove_all_does_not_mutate_inputs() -> None:
    items = [3, 2, 1]
    to_remove = [2, 1]

    remove_all(items, to_remove, distinct=True)

    assert items == [3, 2, 1]
    assert to_remove == [2, 1]


def test_remove_all_sorts_inputs_in_place_when_allowed() -> None:
    items = [3, 2, 1]
    to_remove = [2, 1]

    assert remove_all(items, to_remove, alter_lists=True) == [3]
    assert items == [1, 2, 3]
    assert to_remove == [1, 2]


def test_remove_all_uses_key_function_for_entities() -> None:
    local = [Tag(name="b"), Tag(name="a"), Tag(name="a")]
    stored = [Tag(name="a")]

    result = remove_all(local, stored, distinct=True, key=lambda tag: tag.name)

    assert result == [Tag(name="b")]


def test_none_sorts_before_values() -> None:
    assert distinct_sorted(["b", None, "a", None]) == [None, "a", "b"]
    assert null_first(None) < null_first("")
    assert null_first(None) == null_first(None)
    assert remove_all([None, "a"], [None]) == ["a"]


def test_distinct_sorted_keeps_first_of_equal_keys() -> None:
    items = [("x", 1), ("y", 0), ("x", 2)]

    assert distinct_sorted(items, key=lambda item: item[0]) == [("x", 1), ("y", 0)]


def test_partition_preserves_order() -> None:
    assert partition(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]
    assert partition([], 3) == []


def test_partition_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        partition([1], 0)
