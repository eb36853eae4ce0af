"""Fire-and-forget background tasks.

The update handler returns to the webhook caller before the message is
processed.  Work scheduled here has no completion guarantee: the host may
recycle the process while a task is still running.  Anything scheduled
through ``BackgroundTasks`` must therefore tolerate being lost, and
notification tasks must be safe to re-deliver.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Holds references to detached tasks until they finish.

    ``asyncio`` only keeps weak references to running tasks, so a task that
    nobody references can be garbage-collected mid-flight.  The set below
    keeps each task alive; the done-callback removes it and logs any
    exception it raised, since no caller will ever await it.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(
        self, coro: Coroutine[Any, Any, Any], *, name: str = "background"
    ) -> asyncio.Task[Any]:
        """Schedule *coro* without waiting for it and return its handle."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug("Spawned background task %s (pending=%d)", name, len(self._tasks))
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("Background task %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed: %s",
                task.get_name(),
                exc,
                exc_info=exc,
            )

    @property
    def pending(self) -> int:
        """Number of tasks that have not finished yet."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every outstanding task, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
