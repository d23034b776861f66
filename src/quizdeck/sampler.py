"""Unbiased shuffle-and-truncate used to draw session pools."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def sample(pool: Sequence[T], count: int, rng: random.Random | None = None) -> list[T]:
    """Return the first `count` items of a uniformly random permutation of `pool`.

    Fisher-Yates on a copy: for each `i` from the end down to 1, swap with a
    uniform `j` in `[0, i]`. The input sequence is never modified.
    """
    if count < 0 or count > len(pool):
        raise ValueError(f"count must be between 0 and {len(pool)}, got {count}.")
    randint = rng.randint if rng is not None else random.randint
    shuffled = list(pool)
    for i in range(len(shuffled) - 1, 0, -1):
        j = randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled[:count]


def clamp_count(requested: int | None, available: int) -> int:
    """Clamp a requested draw size to `[1, available]`; `None` means everything."""
    if available <= 0:
        return 0
    if requested is None:
        return available
    return max(1, min(requested, available))
