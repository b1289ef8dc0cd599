class RoomError(Exception):
    """Base class for room coordination errors."""


class RoomFullError(RoomError):
    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id} is full")
        self.room_id = room_id


class StaleSenderError(RoomError):
    """A message arrived from a connection that is no longer a member of the room."""

    def __init__(self, room_id: str, connection_id: str):
        super().__init__(f"Connection {connection_id} is not a member of room {room_id}")
        self.room_id = room_id
        self.connection_id = connection_id
