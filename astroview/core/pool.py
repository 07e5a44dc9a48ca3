"""
astroview/core/pool.py
Bounded fan-out for upstream calls.

run_with_concurrency(tasks, n):
  • at most n tasks awaiting I/O at once; a finished task immediately
    frees its slot for the next queued one
  • results are index-aligned with tasks
  • a task that raises yields None at its index, the batch carries on
  • n <= 0 is clamped to 1
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

log = logging.getLogger("pool")

T = TypeVar("T")


async def run_with_concurrency(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    concurrency: int = 3,
) -> list[Optional[T]]:
    results: list[Optional[T]] = [None] * len(tasks)
    if not tasks:
        return results

    limit = max(1, concurrency)
    queue = iter(enumerate(tasks))

    async def worker() -> None:
        # Workers share one iterator; next() never suspends, so no two
        # workers can claim the same index.
        for idx, task in queue:
            try:
                results[idx] = await task()
            except Exception as ex:
                log.warning(f"task {idx} failed: {ex!r}")
                results[idx] = None

    await asyncio.gather(*(worker() for _ in range(min(limit, len(tasks)))))
    return results
