"""
astroview/core/background.py
Detached (fire-and-forget) tasks.

The caller that spawns a task never awaits it. The event loop only keeps
weak references to tasks, so each owner holds them here until they finish.
Coroutines handed to spawn() are expected to log their own failures;
anything that still escapes is logged by the done-callback.
"""

import asyncio
import logging
from typing import Coroutine

log = logging.getLogger("background")


class DetachedTasks:
    def __init__(self, label: str) -> None:
        self._label = label
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, name: str = "") -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"{self._label}:{name}" if name else self._label)
        self._tasks.add(task)
        task.add_done_callback(self._done)
        return task

    def _done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        ex = task.exception()
        if ex is not None:
            log.warning(f"{task.get_name()} failed: {ex!r}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every task spawned so far (and any they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
