import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional
from constants import ROOM_CAPACITY, ROOM_GRACE_PERIOD_SECONDS, ROOM_HISTORY_LIMIT
from schemas.events import Message
from logging_config import get_logger

logger = get_logger(__name__)


def normalize_room_id(room_id: str) -> str:
    return room_id.strip().upper()


@dataclass
class Participant:
    connection_id: str
    username: str
    joined_at: float


@dataclass
class Room:
    room_id: str
    created_at: float
    capacity: int = ROOM_CAPACITY
    members: Dict[str, Participant] = field(default_factory=dict)
    history: Deque[Message] = field(default_factory=lambda: deque(maxlen=ROOM_HISTORY_LIMIT))

    @property
    def is_empty(self) -> bool:
        return not self.members

    def is_full_for(self, connection_id: str) -> bool:
        """True when there is no seat left for connection_id (its own seat counts as free)."""
        others = [conn_id for conn_id in self.members if conn_id != connection_id]
        return len(others) >= self.capacity

    def usernames(self) -> List[str]:
        return [participant.username for participant in self.members.values()]

    def other_members(self, connection_id: str) -> List[Participant]:
        return [p for conn_id, p in self.members.items() if conn_id != connection_id]

    def recent_messages(self) -> List[Message]:
        return list(self.history)


class RoomRegistry:
    """In-memory room store. Owns every Room and the pending grace-period removals.

    All mutating methods are synchronous so that, on a single event loop, no
    other handler can observe a room half-way through a change.
    """

    def __init__(
        self,
        grace_period: float = ROOM_GRACE_PERIOD_SECONDS,
        capacity: int = ROOM_CAPACITY,
        history_limit: int = ROOM_HISTORY_LIMIT,
        clock: Callable[[], float] = time.time,
    ):
        self.grace_period = grace_period
        self.capacity = capacity
        self.history_limit = history_limit
        self.clock = clock
        self._rooms: Dict[str, Room] = {}
        # Pending grace-period removals: {room_id: timer handle}
        self._pending_removals: Dict[str, asyncio.TimerHandle] = {}
        logger.info(
            f"Initializing RoomRegistry (capacity={capacity}, history_limit={history_limit}, "
            f"grace_period={grace_period}s)"
        )

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(normalize_room_id(room_id))

    def get_or_create(self, room_id: str) -> Room:
        room_id = normalize_room_id(room_id)
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(
                room_id=room_id,
                created_at=self.clock(),
                capacity=self.capacity,
                history=deque(maxlen=self.history_limit),
            )
            self._rooms[room_id] = room
            logger.info(f"Created room {room_id}")
        return room

    def remove(self, room_id: str) -> bool:
        room_id = normalize_room_id(room_id)
        handle = self._pending_removals.pop(room_id, None)
        if handle is not None:
            handle.cancel()
        room = self._rooms.pop(room_id, None)
        if room is None:
            logger.debug(f"Room {room_id} already removed")
            return False
        logger.info(f"Removed room {room_id} ({len(room.history)} messages dropped)")
        return True

    def count(self) -> int:
        return len(self._rooms)

    def user_count(self) -> int:
        return sum(len(room.members) for room in self._rooms.values())

    def rooms(self) -> List[Room]:
        """Snapshot of the tracked rooms, safe to iterate while rooms are removed."""
        return list(self._rooms.values())

    def schedule_removal(self, room_id: str):
        """Remove the room after the grace period unless someone has joined it by then.

        A newer schedule for the same room replaces the pending one.
        """
        room_id = normalize_room_id(room_id)
        loop = asyncio.get_running_loop()
        previous = self._pending_removals.pop(room_id, None)
        if previous is not None:
            previous.cancel()
        self._pending_removals[room_id] = loop.call_later(
            self.grace_period, self._expire_if_empty, room_id
        )
        logger.debug(f"Scheduled removal of room {room_id} in {self.grace_period}s")

    def pending_removals(self) -> int:
        return len(self._pending_removals)

    def _expire_if_empty(self, room_id: str):
        self._pending_removals.pop(room_id, None)
        room = self._rooms.get(room_id)
        if room is None:
            return
        if not room.is_empty:
            logger.debug(f"Room {room_id} is occupied again, keeping it")
            return
        logger.info(f"Grace period elapsed for empty room {room_id}")
        self.remove(room_id)

    def shutdown(self):
        """Cancel every pending grace-period removal."""
        for handle in self._pending_removals.values():
            handle.cancel()
        cancelled = len(self._pending_removals)
        self._pending_removals.clear()
        logger.info(f"RoomRegistry shut down ({cancelled} pending removals cancelled, {self.count()} rooms)")
