"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Bounded-concurrency worker pool with order-preserving results.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Sequence[T],
    worker: Callable[[T, int], Awaitable[R]],
    limit: int,
) -> list[R]:
    """
    Run ``worker(item, index)`` for every item with at most ``limit`` in flight.

    ``min(limit, len(items))`` workers claim indices from a shared counter
    and write each result into the slot of its input index, so the output
    order matches the input regardless of completion order. ``worker`` is
    expected to turn per-item failures into values; an exception escaping
    it aborts the whole run.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")

    results: list[R | None] = [None] * len(items)
    next_index = 0

    async def _drain() -> None:
        nonlocal next_index
        while next_index < len(items):
            index = next_index
            next_index += 1
            results[index] = await worker(items[index], index)

    await asyncio.gather(*(_drain() for _ in range(min(limit, len(items)))))
    return results  # type: ignore[return-value]
