import random
import string
from typing import List, Optional
from backend import Participant, Room, RoomRegistry, normalize_room_id
from constants import ROOM_ID_LENGTH
from exceptions import RoomFullError
from relay import relay_message
from schemas.events import (
    Delivery,
    Disconnect,
    JoinRoom,
    LeaveRoom,
    RequestRoomId,
    RoomJoinedData,
    SendSignal,
    ServerEvent,
    SignalMessageData,
)
from logging_config import get_logger

logger = get_logger(__name__)


def generate_room_id(length: int = ROOM_ID_LENGTH) -> str:
    # No collision check: the id space is large relative to the number of live rooms
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


def fallback_username(connection_id: str) -> str:
    return f"NODE_{connection_id[:4].upper()}"


class SessionCoordinator:
    """Membership state of a single connection: unbound, or bound to exactly one room.

    Every operation returns the deliveries it produced; sending them is up to
    the caller.
    """

    def __init__(self, registry: RoomRegistry, connection_id: str):
        self.registry = registry
        self.connection_id = connection_id
        self.room_id: Optional[str] = None

    @property
    def is_bound(self) -> bool:
        return self.room_id is not None

    def handle(self, event) -> List[Delivery]:
        """Dispatch one client event. Room errors become notifications here."""
        if isinstance(event, JoinRoom):
            try:
                return self.join(event.data.room_id, event.data.username)
            except RoomFullError as e:
                logger.warning(f"Join rejected for connection {self.connection_id}: {e}")
                return [Delivery(self.connection_id, ServerEvent(type="room-full"))]
        if isinstance(event, SendSignal):
            return self.send(event.data)
        if isinstance(event, RequestRoomId):
            return self.request_identifier()
        if isinstance(event, (LeaveRoom, Disconnect)):
            return self.leave()
        raise TypeError(f"Unhandled client event: {type(event).__name__}")

    def join(self, room_id: str, requested_username: Optional[str] = None) -> List[Delivery]:
        room_id = normalize_room_id(room_id)
        room = self.registry.get_or_create(room_id)

        # Capacity is checked before leaving the previous room so a rejected
        # move keeps the current membership.
        if room.is_full_for(self.connection_id):
            raise RoomFullError(room_id)

        username = (requested_username or "").strip() or fallback_username(self.connection_id)

        if self.room_id == room_id and self.connection_id in room.members:
            room.members[self.connection_id].username = username
            logger.info(f"Connection {self.connection_id} rejoined room {room_id} as {username}")
            return [self._room_joined(room)]

        deliveries = self.leave()

        room.members[self.connection_id] = Participant(
            connection_id=self.connection_id,
            username=username,
            joined_at=self.registry.clock(),
        )
        self.room_id = room_id
        logger.info(f"User {username} ({self.connection_id}) joined room {room_id} ({len(room.members)}/{room.capacity})")

        deliveries.extend(
            Delivery(other.connection_id, ServerEvent(type="user-joined", data=username))
            for other in room.other_members(self.connection_id)
        )
        deliveries.append(self._room_joined(room))
        return deliveries

    def leave(self) -> List[Delivery]:
        if self.room_id is None:
            return []
        room_id, self.room_id = self.room_id, None

        room = self.registry.get(room_id)
        if room is None:
            return []
        participant = room.members.pop(self.connection_id, None)
        if participant is None:
            return []
        logger.info(f"User {participant.username} ({self.connection_id}) left room {room_id}")

        deliveries = [
            Delivery(other.connection_id, ServerEvent(type="user-left", data=participant.username))
            for other in room.other_members(self.connection_id)
        ]
        if room.is_empty:
            self.registry.schedule_removal(room_id)
        return deliveries

    def send(self, payload: SignalMessageData) -> List[Delivery]:
        return relay_message(self.registry, self.room_id, self.connection_id, payload)

    def request_identifier(self) -> List[Delivery]:
        return [Delivery(self.connection_id, ServerEvent(type="room-id-generated", data=generate_room_id()))]

    def _room_joined(self, room: Room) -> Delivery:
        data = RoomJoinedData(
            room_id=room.room_id,
            users=room.usernames(),
            messages=room.recent_messages(),
        )
        return Delivery(self.connection_id, ServerEvent(type="room-joined", data=data))
