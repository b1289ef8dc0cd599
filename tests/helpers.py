"""Test helpers: a controllable clock and client event builders."""

from typing import Optional
from schemas.events import JoinRoom, JoinRoomData, SendSignal, SignalMessageData


class FakeClock:
    """Manually advanced replacement for time.time()."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def join_event(room_id: str, username: Optional[str] = None) -> JoinRoom:
    return JoinRoom(type="join-room", data=JoinRoomData(room_id=room_id, username=username))


def signal_event(
    message: Optional[str] = None,
    raw_signal: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> SendSignal:
    return SendSignal(
        type="signal-message",
        data=SignalMessageData(message=message, raw_signal=raw_signal, timestamp=timestamp),
    )


def by_recipient(deliveries) -> dict:
    """Group deliveries as {connection_id: [(event type, data), ...]}."""
    grouped: dict = {}
    for delivery in deliveries:
        grouped.setdefault(delivery.connection_id, []).append((delivery.event.type, delivery.event.data))
    return grouped
