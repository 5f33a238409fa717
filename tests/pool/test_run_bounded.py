from __future__ import annotations

import asyncio
import random

import pytest

from mcp_cli.pool import run_bounded


def run_async(coro):
    return asyncio.run(coro)


class Tracker:
    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self.seen: list[int] = []

    async def work(self, item: int, index: int) -> str:
        self.active += 1
        self.peak = max(self.peak, self.active)
        self.seen.append(index)
        try:
            await asyncio.sleep(random.uniform(0, 0.005))
            return f"{item}@{index}"
        finally:
            self.active -= 1


@pytest.mark.parametrize("size,limit", [(1, 1), (5, 2), (12, 3), (7, 7), (3, 10)])
def test_results_preserve_input_order_under_random_delays(size: int, limit: int):
    async def scenario() -> None:
        tracker = Tracker()
        items = list(range(100, 100 + size))

        results = await run_bounded(items, tracker.work, limit)

        assert results == [f"{item}@{index}" for index, item in enumerate(items)]
        assert sorted(tracker.seen) == list(range(size))
        assert tracker.peak <= min(limit, size)

    run_async(scenario())


def test_concurrency_reaches_but_never_exceeds_limit():
    async def scenario() -> None:
        tracker = Tracker()
        release = asyncio.Event()

        async def blocking(item: int, index: int) -> int:
            tracker.active += 1
            tracker.peak = max(tracker.peak, tracker.active)
            await release.wait()
            tracker.active -= 1
            return item

        runner = asyncio.ensure_future(run_bounded(list(range(10)), blocking, 3))
        await asyncio.sleep(0.01)
        assert tracker.active == 3
        release.set()
        assert await runner == list(range(10))
        assert tracker.peak == 3

    run_async(scenario())


def test_empty_input_returns_empty_list():
    async def scenario() -> None:
        async def never(item, index):
            raise AssertionError("worker must not run")

        assert await run_bounded([], never, 4) == []

    run_async(scenario())


def test_limit_below_one_is_rejected():
    async def scenario() -> None:
        async def echo(item, index):
            return item

        with pytest.raises(ValueError, match="limit"):
            await run_bounded([1], echo, 0)

    run_async(scenario())
