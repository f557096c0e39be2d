"""
Fixed-size leg-group enumeration.

Both generators are deterministic: groups come out in lexicographic order
of input positions and each group keeps the relative order of the chosen
elements.

Example:
    combinations(["a", "b", "c"], 2)
    # [["a", "b"], ["a", "c"], ["b", "c"]]

    combinations_with_repetition(["a", "b"], 2)
    # [["a", "a"], ["a", "b"], ["b", "b"]]
"""

import itertools
import math
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def _check_size(k: int) -> None:
    if k < 0:
        raise ValueError(f"Group size must be non-negative, got {k}")


def combinations(items: Sequence[T], k: int) -> list[list[T]]:
    """
    All size-k subsets without repetition.

    Args:
        items: Ordered input elements
        k: Group size

    Returns:
        C(n, k) groups; [[]] when k == 0, [] when k > n

    Raises:
        ValueError: If k is negative
    """
    _check_size(k)
    return [list(group) for group in itertools.combinations(items, k)]


def combinations_with_repetition(items: Sequence[T], k: int) -> list[list[T]]:
    """
    All size-k multisets where an element may be chosen more than once.

    Args:
        items: Ordered input elements
        k: Group size

    Returns:
        C(n + k - 1, k) groups; [[]] when k == 0, [] when items is empty and k > 0

    Raises:
        ValueError: If k is negative
    """
    _check_size(k)
    return [list(group) for group in itertools.combinations_with_replacement(items, k)]


def count_groups(n: int, k: int, allow_repetition: bool = False) -> int:
    """Number of groups the matching generator yields for n elements."""
    _check_size(k)
    if allow_repetition:
        if n == 0:
            return 1 if k == 0 else 0
        return math.comb(n + k - 1, k)
    return math.comb(n, k)
