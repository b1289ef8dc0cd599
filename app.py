from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import ValidationError
from routers.rooms import health_router, rooms_router
from backend import RoomRegistry
from reaper import RoomReaper
from sessions import SessionCoordinator
from schemas.events import Delivery, Disconnect, parse_client_event
from constants import REAPER_INTERVAL_SECONDS, ROOM_IDLE_THRESHOLD_SECONDS, STATIC_DIR
import uuid
from typing import Dict, Iterable, Optional
from logging_config import get_logger, setup_logging
import os

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


class ConnectionHub:
    """Live websockets of this process, keyed by connection id."""

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        self.connections[connection_id] = websocket
        logger.debug(f"Registered connection {connection_id} ({len(self.connections)} open)")

    def unregister(self, connection_id: str):
        self.connections.pop(connection_id, None)
        logger.debug(f"Unregistered connection {connection_id} ({len(self.connections)} open)")

    async def deliver(self, deliveries: Iterable[Delivery]):
        # Sequential so each recipient sees events in the order they were produced
        for delivery in deliveries:
            websocket = self.connections.get(delivery.connection_id)
            if websocket is None:
                logger.debug(f"Dropping {delivery.event.type} for closed connection {delivery.connection_id}")
                continue
            try:
                await websocket.send_json(delivery.event.to_wire())
                logger.debug(f"Sent {delivery.event.type} to connection {delivery.connection_id}")
            except Exception as e:
                logger.warning(f"Error sending {delivery.event.type} to connection {delivery.connection_id}: {e}")


def create_app(
    registry: Optional[RoomRegistry] = None,
    reaper: Optional[RoomReaper] = None,
    static_dir: str = STATIC_DIR,
) -> FastAPI:
    registry = registry or RoomRegistry()
    reaper = reaper or RoomReaper(
        registry,
        interval=REAPER_INTERVAL_SECONDS,
        idle_threshold=ROOM_IDLE_THRESHOLD_SECONDS,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        reaper.start()
        yield
        await reaper.stop()
        registry.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.state.registry = registry
    app.state.reaper = reaper
    app.state.hub = ConnectionHub()

    # Configure CORS to allow all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(rooms_router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Signal room websocket. Frames are JSON objects {"type": ..., "data": ...}."""
        hub: ConnectionHub = websocket.app.state.hub
        connection_id = str(uuid.uuid4())
        session = SessionCoordinator(websocket.app.state.registry, connection_id)

        await websocket.accept()
        hub.register(connection_id, websocket)
        logger.info(f"New connection: {connection_id}")

        try:
            message_count = 0
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                message_count += 1
                data = message.get("text")
                if data is None:
                    logger.warning(f"Ignoring binary frame #{message_count} from connection {connection_id}")
                    continue
                try:
                    event = parse_client_event(data)
                except ValidationError as e:
                    logger.warning(f"Ignoring invalid frame #{message_count} from connection {connection_id}: {e.errors()}")
                    continue
                logger.debug(f"Received {event.type} (#{message_count}) from connection {connection_id}")
                await hub.deliver(session.handle(event))
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            # Connection loss is an implicit leave
            hub.unregister(connection_id)
            await hub.deliver(session.handle(Disconnect()))
            logger.info(f"User disconnected: {connection_id}")

    static_root = Path(static_dir).resolve()

    @app.get("/{full_path:path}", include_in_schema=False)
    async def static_fallback(full_path: str):
        candidate = (static_root / full_path).resolve()
        if candidate.is_file() and static_root in candidate.parents:
            return FileResponse(candidate)
        index = static_root / "index.html"
        if index.is_file():
            return FileResponse(index)
        raise HTTPException(status_code=404, detail="Not found")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
