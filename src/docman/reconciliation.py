"""Sorted-merge set algebra used by every bulk persistence path.

``remove_all`` answers "which of these local items are not stored yet" in
``O(n log n + m log m)`` by sorting both sides once and merge-scanning them,
instead of issuing one existence query per item. ``partition`` splits work into
chunks that respect the store's per-statement parameter limit.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

KeyFunc = Callable[[Any], Any]


def null_first(value: Any) -> Tuple[bool, Any]:
    """Return a sort key placing ``None`` strictly before every other value.

    Two ``None`` values compare equal; non-``None`` values keep their natural
    ordering.

    Args:
        value: Value to wrap.

    Returns:
        Tuple[bool, Any]: Sort key usable with ``sorted`` and comparisons.
    """

    if value is None:
        return (False, 0)
    return (True, value)


def _sort_key(key: Optional[KeyFunc]) -> KeyFunc:
    if key is None:
        return null_first
    return lambda item: null_first(key(item))


def distinct_sorted(
    items: List[T],
    *,
    key: Optional[KeyFunc] = None,
    alter_list: bool = False,
) -> List[T]:
    """Sort ``items`` and collapse runs of equal elements.

    The first element of every run of equal keys is kept; since sorting is
    stable this is the element that appeared first in ``items``.

    Args:
        items: Input sequence.
        key: Optional function extracting the comparison key.
        alter_list: Sort ``items`` in place instead of a copy. Nothing is
            removed from ``items`` either way.

    Returns:
        List[T]: Sorted list without duplicate keys.
    """

    sort_key = _sort_key(key)
    ordered = items if alter_list else list(items)
    ordered.sort(key=sort_key)

    result: List[T] = []
    previous: Any = None
    for index, item in enumerate(ordered):
        current = sort_key(item)
        if index == 0 or current != previous:
            result.append(item)
            previous = current
    return result


def remove_all(
    items: List[T],
    to_remove: List[T],
    distinct: bool = False,
    *,
    key: Optional[KeyFunc] = None,
    alter_lists: bool = False,
) -> List[T]:
    """Return every element of ``items`` whose key does not occur in ``to_remove``.

    Equivalent in content to ``[x for x in items if x not in to_remove]`` but
    computed with a single merge pass over both sorted sequences. Elements that
    do not match pass through unchanged, duplicates included unless
    ``distinct`` is set.

    Args:
        items: Elements to filter.
        to_remove: Elements to subtract.
        distinct: Collapse duplicate keys in the result.
        key: Optional function extracting the comparison key of both lists.
        alter_lists: Sort the input lists in place to avoid copying them.

    Returns:
        List[T]: Remaining elements in sorted order, or ``items`` in their
        original order when ``to_remove`` is empty and ``distinct`` is unset.
    """

    sort_key = _sort_key(key)

    if not to_remove:
        if distinct:
            return distinct_sorted(items, key=key, alter_list=alter_lists)
        return list(items)

    removal = to_remove if alter_lists else list(to_remove)
    removal.sort(key=sort_key)
    removal_keys = [sort_key(item) for item in removal]

    if distinct:
        ordered = distinct_sorted(items, key=key, alter_list=alter_lists)
    else:
        ordered = items if alter_lists else list(items)
        ordered.sort(key=sort_key)

    result: List[T] = []
    cursor = 0
    total = len(removal_keys)
    for item in ordered:
        current = sort_key(item)
        while cursor < total and current > removal_keys[cursor]:
            cursor += 1
        if cursor >= total or current != removal_keys[cursor]:
            result.append(item)
    return result


def partition(items: Sequence[T], max_size: int) -> List[List[T]]:
    """Split ``items`` into consecutive chunks of at most ``max_size`` elements.

    Args:
        items: Sequence to split.
        max_size: Maximum chunk length.

    Returns:
        List[List[T]]: Chunks in their original relative order.

    Raises:
        ValueError: If ``max_size`` is smaller than one.
    """

    if max_size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {max_size}.")
    return [list(items[start : start + max_size]) for start in range(0, len(items), max_size)]


__all__ = ["null_first", "distinct_sorted", "remove_all", "partition"]
