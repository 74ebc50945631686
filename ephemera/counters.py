"""Best-effort background updates of view and click counters."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Tuple


@dataclass
class _Job:
    fn: Callable[..., Awaitable[Any]]
    args: Tuple[Any, ...] = field(default_factory=tuple)
    description: str = ""


class CounterUpdater:
    """Runs counter jobs on a bounded queue drained by its own worker tasks.

    Jobs never run in the submitting request's task, so cancelling the request
    does not cancel the job. Each job is attempted once; failures are logged.
    When the queue is full, new jobs are dropped.
    """

    def __init__(
        self,
        max_queue_size: int = 1000,
        workers: int = 2,
        logger: Optional[logging.Logger] = None,
    ):
        self.max_queue_size = max_queue_size
        self.workers = max(1, workers)
        self.logger = logger or logging.getLogger(__name__)
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self.dropped = 0

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start the worker tasks on the running event loop."""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"counter-updater-{i}")
            for i in range(self.workers)
        ]
        self.logger.info(f"Counter updater started with {self.workers} workers")

    def submit(self, fn: Callable[..., Awaitable[Any]], *args: Any, description: str = "") -> bool:
        """Queue ``fn(*args)`` without waiting for it.

        Returns:
            False if the job was dropped because the updater is stopped or full
        """
        if self._queue is None or not self.running:
            self.logger.warning(f"Counter updater not running, dropping job: {description}")
            self.dropped += 1
            return False
        try:
            self._queue.put_nowait(_Job(fn, args, description))
        except asyncio.QueueFull:
            self.logger.warning(f"Counter queue full, dropping job: {description}")
            self.dropped += 1
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, timeout: float = 5.0) -> None:
        """Drain pending jobs for up to ``timeout`` seconds, then cancel the workers."""
        if not self._tasks:
            return
        if self._queue is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=timeout)
            except asyncio.TimeoutError:
                self.logger.warning(
                    f"Counter updater stopped with {self._queue.qsize()} pending jobs"
                )

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.logger.info("Counter updater stopped")

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await job.fn(*job.args)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Counter job failed ({job.description}): {e}", exc_info=True)
            finally:
                self._queue.task_done()
