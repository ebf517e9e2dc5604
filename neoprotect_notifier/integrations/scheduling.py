"""
Delayed Task Scheduler
Runs coroutines after a delay, with per-key replacement and bulk cancellation.
"""

import asyncio
from typing import Awaitable, Callable, Hashable, Optional

import structlog

logger = structlog.get_logger(__name__)


class DelayedTaskScheduler:
    """
    Tracks delayed asyncio tasks owned by one channel.

    Scheduling a key that already has a pending task cancels the pending
    one first. ``cancel_all`` is called when the owning channel shuts down.
    """

    def __init__(self, name: str = "scheduler"):
        self._name = name
        self._tasks: set[asyncio.Task] = set()
        self._keyed: dict[Hashable, asyncio.Task] = {}

    def schedule(
        self,
        delay: float,
        coro_factory: Callable[[], Awaitable[object]],
        key: Optional[Hashable] = None,
    ) -> asyncio.Task:
        """Run ``coro_factory()`` after ``delay`` seconds."""
        if key is not None:
            previous = self._keyed.pop(key, None)
            if previous is not None and not previous.done():
                previous.cancel()

        task = asyncio.create_task(self._run(delay, coro_factory, key))
        self._tasks.add(task)
        if key is not None:
            self._keyed[key] = task
        task.add_done_callback(lambda t: self._discard(t, key))
        return task

    async def _run(
        self,
        delay: float,
        coro_factory: Callable[[], Awaitable[object]],
        key: Optional[Hashable],
    ) -> None:
        await asyncio.sleep(delay)
        try:
            await coro_factory()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "delayed_task_failed",
                scheduler=self._name,
                key=str(key) if key is not None else None,
                error=str(e),
            )

    def _discard(self, task: asyncio.Task, key: Optional[Hashable]) -> None:
        self._tasks.discard(task)
        if key is not None and self._keyed.get(key) is task:
            del self._keyed[key]

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending task scheduled under ``key``, if any."""
        task = self._keyed.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def cancel_all(self) -> None:
        """Cancel every pending task and wait for them to finish."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._keyed.clear()
