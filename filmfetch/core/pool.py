import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from filmfetch.core.errors import PoolError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class WorkerPool:
    """Fixed number of concurrent slots shared by both ingestion phases.

    ``run_all`` is the join barrier: it returns once every submitted task has
    finished. Tasks are expected to absorb their own per-item failures; anything
    that escapes a task aborts the batch and cancels the tasks still pending.
    """

    def __init__(self, size: int):
        if size < 1:
            raise PoolError("worker pool size must be at least 1", details={"size": size})
        self.size = size
        self._semaphore = asyncio.Semaphore(size)
        self._closed = False
        self.in_flight = 0
        self.peak_in_flight = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    async def submit(self, fn: Callable[[T], Awaitable[R]], item: T) -> R:
        if self._closed:
            raise PoolError("worker pool is closed and cannot accept work")
        async with self._semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                return await fn(item)
            finally:
                self.in_flight -= 1

    async def run_all(self, fn: Callable[[T], Awaitable[R]], items: Iterable[T]) -> list[R]:
        if self._closed:
            raise PoolError("worker pool is closed and cannot accept work")
        batch = list(items)
        logger.debug("Submitting batch to worker pool", extra={"tasks": len(batch), "pool_size": self.size})
        tasks = [asyncio.ensure_future(self.submit(fn, item)) for item in batch]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            # one escaped failure ends the batch; nothing may keep running past the barrier
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


class ProgressCounter:
    """Completed-task counter.

    Updated only between suspension points on the event loop, so the increment
    and the returned value cannot interleave with another task.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def increment(self) -> int:
        self._value += 1
        return self._value
