from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import GeneratedRoomIdResponse, HealthResponse, RoomDetailsResponse
from sessions import generate_room_id
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])
health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    registry = request.app.state.registry
    return HealthResponse(rooms=registry.count(), total_users=registry.user_count())


@rooms_router.post("/", response_model=GeneratedRoomIdResponse)
async def create_room_id(request: Request):
    # Rooms are created lazily on first join; this only hands out an identifier
    room_id = generate_room_id()
    logger.info(f"Generated room id {room_id} for {request.client.host if request.client else 'unknown'}")
    return GeneratedRoomIdResponse(room_id=room_id)


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get room details including online users.

    Returns:
    - room_id: Canonical (uppercase) room identifier
    - created_at: Room creation timestamp
    - users: Display names of the current members
    - online_users_count: Current number of members
    - max_users: Room capacity
    - message_count: Messages kept in the room history
    - is_full: Whether room has reached max capacity
    """
    registry = request.app.state.registry
    room = registry.get(room_id)
    if not room:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    online_users_count = len(room.members)
    logger.info(f"Room details retrieved for {room.room_id}: {online_users_count}/{room.capacity} users online")

    return RoomDetailsResponse(
        room_id=room.room_id,
        created_at=datetime.fromtimestamp(room.created_at, tz=timezone.utc).isoformat(),
        users=room.usernames(),
        online_users_count=online_users_count,
        max_users=room.capacity,
        message_count=len(room.history),
        is_full=online_users_count >= room.capacity,
    )
