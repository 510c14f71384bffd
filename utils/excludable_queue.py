from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

__all__: list[str] = ["ExcludableQueue"]

T = TypeVar("T")

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ExcludableQueue(asyncio.Queue[Any], Generic[T]):
    """An asyncio queue whose put() and clear() exclude each other.

    Used as the event stream between the concurrent provider tasks (producers) and the
    single result aggregator (consumer). Producers may also use put_nowait() from
    synchronous code running on the loop; the queue is unbounded by default so it never blocks.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._lock = asyncio.Lock()

    async def put(self, item: T) -> None:
        """Add an item, waiting for a running clear() to finish first.

        Args:
            item (T): The item to add to the queue.
        """
        async with self._lock:
            await super().put(item)

    async def clear(self, callback: Callable[[T], None] | Callable[[T], Awaitable[None]] | None = None) -> int:
        """Drop every queued item, optionally handing each one to a callback first.

        The callback may be synchronous or a coroutine function. Callback errors are logged
        and do not stop the drain.

        Args:
            callback: Function applied to each removed item, or None.

        Returns:
            int: Number of items removed.
        """
        removed: int = 0
        async with self._lock:
            while not self.empty():
                try:
                    item: T = self.get_nowait()
                except asyncio.QueueEmpty:
                    break
                removed += 1
                self.task_done()
                if callback is None:
                    continue
                try:
                    result: Awaitable[None] | None = callback(item)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception as err:  # noqa: BLE001
                    logger.error("Callback error for item %r: %r", item, err)
        logger.debug("Queue cleared (%d items)", removed)
        return removed
