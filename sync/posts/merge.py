"""
Ordered merging of identity-keyed, time-stamped sequences.

merged_with() builds a new sequence and is used to combine feeds;
merge_into() upserts a page into an existing list and is the only way a
controller's items change.
"""
from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Iterable, Sequence, TypeVar

T = TypeVar("T")

IsSame = Callable[[T, T], bool]
IsBefore = Callable[[T, T], bool]


def same_id(lhs, rhs) -> bool:
    return lhs.id == rhs.id


def newer_first(lhs, rhs) -> bool:
    return lhs.creation_date > rhs.creation_date


def _sort_key(is_before: IsBefore):
    def compare(lhs, rhs) -> int:
        if is_before(lhs, rhs):
            return -1
        if is_before(rhs, lhs):
            return 1
        return 0

    return cmp_to_key(compare)


def merged_with(
    primary: Sequence[T],
    secondary: Sequence[T],
    is_same: IsSame = same_id,
    is_before: IsBefore = newer_first,
) -> list[T]:
    """
    Merge two sequences into one ordered by is_before.

    Elements of secondary that match an element of primary are dropped, so
    primary wins on conflicts. Duplicates inside a single input are kept.
    Sorting is stable: ties keep primary before secondary and input order
    within each.
    """
    result = list(primary)
    for candidate in secondary:
        if not any(is_same(existing, candidate) for existing in primary):
            result.append(candidate)
    result.sort(key=_sort_key(is_before))
    return result


def merge_into(
    existing: list[T],
    incoming: Iterable[T],
    is_same: IsSame = same_id,
    is_before: IsBefore = newer_first,
) -> None:
    """Upsert incoming into existing, then re-sort existing once."""
    for candidate in incoming:
        for index, current in enumerate(existing):
            if is_same(current, candidate):
                existing[index] = candidate
                break
        else:
            existing.append(candidate)
    existing.sort(key=_sort_key(is_before))
