"""Splitting data file lists into batches and chunks.

Two levels: `partition_into` spreads the (shuffled) paths over one batch
per worker; `split_bounded` cuts each batch into chunks small enough for
one tool invocation.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def shuffle_paths(items: list[T], rng: random.Random | None = None) -> list[T]:
    """Uniformly shuffle `items` in place and return it.

    Data files differ a lot in parse cost; shuffling makes batches take
    similar time.
    """
    (rng or random).shuffle(items)
    return items


def partition_into(items: Sequence[T], count: int) -> list[list[T]]:
    """Split `items` into exactly `count` consecutive slices of near-equal size.

    Slices have ceil(len / count) items each; trailing slices may be
    shorter or empty.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    size = math.ceil(len(items) / count)
    return [list(items[i * size : (i + 1) * size]) for i in range(count)]


def split_bounded(items: Sequence[T], max_size: int) -> list[list[T]]:
    """Split `items` into the fewest balanced chunks of at most `max_size`."""
    if max_size < 1:
        raise ValueError(f"max_size must be >= 1, got {max_size}")
    if not items:
        return []
    return partition_into(items, math.ceil(len(items) / max_size))
