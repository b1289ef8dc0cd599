import asyncio
from typing import Callable, List, Optional
from backend import RoomRegistry
from constants import REAPER_INTERVAL_SECONDS, ROOM_IDLE_THRESHOLD_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)


class RoomReaper:
    """Periodically drops empty rooms that were created more than idle_threshold seconds ago.

    Backstop for the per-room grace timer. It only reads room size and age and
    removes whole rooms through the registry.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        interval: float = REAPER_INTERVAL_SECONDS,
        idle_threshold: float = ROOM_IDLE_THRESHOLD_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.registry = registry
        self.interval = interval
        self.idle_threshold = idle_threshold
        self.clock = clock or registry.clock
        self._task: Optional[asyncio.Task] = None

    def sweep(self) -> List[str]:
        now = self.clock()
        expired = [
            room.room_id
            for room in self.registry.rooms()
            if room.is_empty and now - room.created_at > self.idle_threshold
        ]
        for room_id in expired:
            self.registry.remove(room_id)
        if expired:
            logger.info(f"Reaper removed {len(expired)} idle rooms: {expired}")
        return expired

    async def run(self):
        logger.info(f"Room reaper started (interval={self.interval}s, idle_threshold={self.idle_threshold}s)")
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    self.sweep()
                except Exception as e:
                    logger.error(f"Error during reaper sweep: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Room reaper stopped")
            raise

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
