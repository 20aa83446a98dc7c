import asyncio
from typing import Callable

from ..config import cleanup
from ..errors import StorageUnavailable
from ..logger import get_logger
from ..models.data import now_ms

logger = get_logger(__name__)


class CleanupWorker:
    """Periodically rolls forward abandoned submissions and prunes expired leaderboard entries"""

    def __init__(self, db_manager, interval_seconds: int = None, clock: Callable[[], int] = now_ms):
        self.db = db_manager
        self.interval = cleanup.interval_seconds if interval_seconds is None else interval_seconds
        self.clock = clock
        self.processing = False
        self._task = None

    async def start(self):
        """Start the cleanup loop; an interval of 0 disables it"""
        if self.interval <= 0:
            logger.info("Leaderboard cleanup worker disabled")
            return
        self.processing = True
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        """Stop the cleanup loop"""
        self.processing = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run_once(self):
        return await self.db.cleanup(self.clock())

    async def _run(self):
        """Main cleanup loop"""
        while self.processing:
            try:
                await self.run_once()
            except StorageUnavailable as e:
                logger.error(f"Storage error during leaderboard cleanup: {e}")
            except Exception as e:
                logger.error(f"Unexpected error in leaderboard cleanup: {e}")
            await asyncio.sleep(self.interval)
