from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    rooms: int
    total_users: int = Field(serialization_alias="totalUsers")


class GeneratedRoomIdResponse(BaseModel):
    room_id: str


class RoomDetailsResponse(BaseModel):
    room_id: str
    created_at: str
    users: list[str]
    online_users_count: int
    max_users: int
    message_count: int
    is_full: bool
