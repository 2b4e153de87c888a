"""Descriptive statistics helpers for the analytics models"""

from typing import Any, Callable, Dict, Hashable, Iterable, List, Sequence, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence"""
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_median(values: Sequence[float]) -> float:
    """
    Median of a numeric sequence.

    Even-length input averages the two middle elements. Empty input returns 0.
    """
    if not values:
        return 0.0

    sorted_values = sorted(values)
    mid = len(sorted_values) // 2

    if len(sorted_values) % 2 != 0:
        return sorted_values[mid]
    return (sorted_values[mid - 1] + sorted_values[mid]) / 2


def value_counts(values: Iterable[T]) -> Dict[T, int]:
    """
    Count occurrences of each value, ordered by count descending.

    None values are skipped. Values with equal counts keep first-seen order.
    """
    counts: Dict[T, int] = {}
    for value in values:
        if value is None:
            continue
        counts[value] = counts.get(value, 0) + 1

    # sorted() is stable, so ties stay in insertion order
    return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))


def group_by(items: Iterable[T], key_fn: Callable[[T], Any]) -> Dict[Any, List[T]]:
    """Partition items by key_fn; items whose key is None are dropped"""
    groups: Dict[Any, List[T]] = {}
    for item in items:
        key = key_fn(item)
        if key is None:
            continue
        groups.setdefault(key, []).append(item)
    return groups
