import secrets
from typing import List, Optional
from backend import Room, RoomRegistry
from exceptions import StaleSenderError
from schemas.events import Delivery, Message, ServerEvent, SignalMessageData
import morse
from logging_config import get_logger

logger = get_logger(__name__)


def new_message_id(timestamp_ms: int) -> str:
    return f"{timestamp_ms}-{secrets.token_hex(4)}"


def resolve_sender(registry: RoomRegistry, room_id: Optional[str], connection_id: str) -> Room:
    if room_id is None:
        raise StaleSenderError("<none>", connection_id)
    room = registry.get(room_id)
    if room is None or connection_id not in room.members:
        raise StaleSenderError(room_id, connection_id)
    return room


def relay_message(
    registry: RoomRegistry,
    room_id: Optional[str],
    connection_id: str,
    payload: SignalMessageData,
) -> List[Delivery]:
    """Record a message in the sender's room and address it to the other member and the sender.

    Messages from connections that are not (or no longer) room members are dropped.
    """
    try:
        room = resolve_sender(registry, room_id, connection_id)
    except StaleSenderError as e:
        logger.debug(f"Dropping message: {e}")
        return []

    now_ms = int(registry.clock() * 1000)
    timestamp = payload.timestamp if payload.timestamp is not None else now_ms
    raw_signal = payload.raw_signal or morse.encode(payload.message or "")
    text = payload.message or morse.decode(raw_signal)

    sender = room.members[connection_id]
    message = Message(
        id=new_message_id(now_ms),
        message=text,
        raw_signal=raw_signal,
        username=sender.username,
        timestamp=timestamp,
    )
    room.history.append(message)
    logger.debug(f'Message from {sender.username} in room {room.room_id}: "{text}" (signal: {raw_signal})')

    deliveries = [
        Delivery(other.connection_id, ServerEvent(type="signal-message", data=message))
        for other in room.other_members(connection_id)
    ]
    deliveries.append(Delivery(connection_id, ServerEvent(type="signal-message-sent", data=message)))
    return deliveries
