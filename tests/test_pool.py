# tests/test_pool.py
"""Bounded fan-out: ordering, isolation of failures, concurrency ceiling."""

import asyncio
from functools import partial

import pytest

from astroview.core.pool import run_with_concurrency


class Gauge:
    def __init__(self) -> None:
        self.active = 0
        self.peak   = 0

    async def job(self, value, delay: float = 0.01, fail: bool = False):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(delay)
            if fail:
                raise RuntimeError(f"job {value} failed")
            return value
        finally:
            self.active -= 1


class TestRunWithConcurrency:

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self):
        g = Gauge()
        delays = [0.05, 0.01, 0.03, 0.0, 0.02]
        tasks = [partial(g.job, i, d) for i, d in enumerate(delays)]
        assert await run_with_concurrency(tasks, 2) == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_never_exceeds_limit(self):
        g = Gauge()
        tasks = [partial(g.job, i) for i in range(10)]
        await run_with_concurrency(tasks, 3)
        assert g.peak == 3

    @pytest.mark.asyncio
    async def test_failure_yields_none_and_others_complete(self):
        g = Gauge()
        tasks = [partial(g.job, 0), partial(g.job, 1, fail=True), partial(g.job, 2)]
        assert await run_with_concurrency(tasks, 2) == [0, None, 2]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await run_with_concurrency([], 3) == []

    @pytest.mark.asyncio
    async def test_non_positive_limit_runs_serially(self):
        g = Gauge()
        tasks = [partial(g.job, i) for i in range(4)]
        assert await run_with_concurrency(tasks, 0) == [0, 1, 2, 3]
        assert g.peak == 1

    @pytest.mark.asyncio
    async def test_limit_larger_than_batch(self):
        g = Gauge()
        tasks = [partial(g.job, i) for i in range(2)]
        assert await run_with_concurrency(tasks, 10) == [0, 1]
        assert g.peak == 2
