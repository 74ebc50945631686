"""Periodic purge of expired content and its backing files."""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from .database.content_store import ContentStore
from .storage import FileStorage


@dataclass
class SweepResult:
    """Counts reported by one sweep."""

    expired_files: int = 0
    files_deleted: int = 0
    files_missing: int = 0
    files_failed: int = 0
    records_deleted: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ExpirySweeper:
    """Owns the recurring task that purges expired content.

    File cleanup and record cleanup are independent: records are deleted even
    when some files could not be removed.
    """

    def __init__(
        self,
        content_store: ContentStore,
        storage: FileStorage,
        interval_seconds: float = 3600,
        run_on_start: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.content_store = content_store
        self.storage = storage
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self.logger = logger or logging.getLogger(__name__)
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="expiry-sweeper")
        self.logger.info(f"Expiry sweeper started (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the timer loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Expiry sweeper stopped")

    async def run_once(self) -> SweepResult:
        """Run one sweep.

        Raises:
            InternalError: If expired rows cannot be listed or deleted; the
                rows stay in place for the next run
        """
        async with self._lock:
            result = SweepResult()

            # Soft-deleted rows are purged too, so their files must go with them.
            expired = await self.content_store.find_expired_file_content(include_deleted=True)
            result.expired_files = len(expired)

            for content in expired:
                if not content.lifecycle().purgeable or not content.storage_path:
                    continue
                try:
                    if await self.storage.delete(content.storage_path):
                        result.files_deleted += 1
                    else:
                        result.files_missing += 1
                except OSError as e:
                    result.files_failed += 1
                    self.logger.error(
                        f"Failed to delete file {content.storage_path} for content {content.id}: {e}"
                    )

            result.records_deleted = await self.content_store.delete_expired()

            self.logger.info(
                f"Sweep completed: {result.expired_files} expired files, "
                f"{result.files_deleted} deleted, {result.files_missing} missing, "
                f"{result.files_failed} failed, {result.records_deleted} records deleted"
            )
            return result

    async def _loop(self) -> None:
        if self.run_on_start:
            await self._run_safely()
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self._run_safely()

    async def _run_safely(self) -> None:
        try:
            await self.run_once()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"Error in expiry sweep: {e}", exc_info=True)
