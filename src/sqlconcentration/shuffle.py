"""Uniform in-place shuffling shared by every game mode."""

from __future__ import annotations

import random
from typing import MutableSequence, TypeVar

T = TypeVar("T")


def fisher_yates(items: MutableSequence[T], rng: random.Random | None = None) -> MutableSequence[T]:
    """Shuffle `items` in place, walking from the last index down to 1, and return it."""
    source = rng if rng is not None else random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = source.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def shuffled(items: list[T] | tuple[T, ...], rng: random.Random | None = None) -> list[T]:
    """Return a shuffled copy of `items`."""
    copy = list(items)
    fisher_yates(copy, rng)
    return copy
