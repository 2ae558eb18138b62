from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from backend import RoomStore
from connections import ConnectionRegistry
from constants import CORS_ORIGINS, HEALTH_MESSAGE, ICE_SERVERS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging
from routers.rooms import rooms_router
from schemas.rooms import HealthResponse, IceServer, IceServersResponse
from schemas.signaling import ConnectedEvent
from session import SessionLifecycle
from signaling import SignalRouter

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fresh membership state per server run; nothing survives a restart
    room_store = RoomStore()
    registry = ConnectionRegistry()
    app.state.room_store = room_store
    app.state.registry = registry
    app.state.lifecycle = SessionLifecycle(room_store, registry, SignalRouter(registry))
    logger.info("Signaling state initialized")
    yield
    await app.state.lifecycle.wait_closed()
    await room_store.clear()
    logger.info("Signaling server shut down")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


@app.get("/", response_class=PlainTextResponse)
async def index():
    return HEALTH_MESSAGE


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="ok",
        rooms=app.state.room_store.count(),
        connections=app.state.registry.count(),
    )


@app.get("/ice-servers", response_model=IceServersResponse)
async def get_ice_servers():
    # STUN/TURN servers peers should hand to their RTCPeerConnection
    return IceServersResponse(ice_servers=[IceServer(**server) for server in ICE_SERVERS])


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Signaling channel: one JSON event per text frame, closing the socket is the disconnect."""
    lifecycle: SessionLifecycle = websocket.app.state.lifecycle
    registry: ConnectionRegistry = websocket.app.state.registry

    await websocket.accept()
    connection = registry.register(websocket)
    connection_id = connection.connection_id
    logger.info(f"New client connected: {connection_id}")

    try:
        await registry.send(connection_id, ConnectedEvent(connection_id=connection_id))

        message_count = 0
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                logger.info(f"Client disconnected: {connection_id}")
                break
            # Binary frames are accepted if they carry UTF-8 JSON
            data = frame.get("text")
            if data is None:
                data = (frame.get("bytes") or b"").decode("utf-8", errors="replace")
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")
            await lifecycle.handle_message(connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"Client disconnected: {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        # Shielded inside, completes even when this handler is being cancelled
        await lifecycle.disconnect(connection_id)
