"""
Named set operations.

The visibility rules are written in terms of these helpers so the branch
filter reads as the set algebra it implements.
"""
from typing import AbstractSet, FrozenSet, Iterable, TypeVar

T = TypeVar("T")


def union(*sets: Iterable[T]) -> FrozenSet[T]:
    """All elements present in any of the given sets."""
    result = set()
    for s in sets:
        result.update(s)
    return frozenset(result)


def intersection(a: Iterable[T], b: AbstractSet[T]) -> FrozenSet[T]:
    """Elements of ``a`` that are also in ``b``."""
    return frozenset(x for x in a if x in b)


def difference(a: Iterable[T], b: AbstractSet[T]) -> FrozenSet[T]:
    """Elements of ``a`` that are not in ``b``."""
    return frozenset(x for x in a if x not in b)


def is_disjoint(a: AbstractSet[T], b: AbstractSet[T]) -> bool:
    return not (a & b)
