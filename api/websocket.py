"""WebSocket connection management and PvP event dispatch."""

import asyncio
import json
import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from api.schemas import (
    ClientMessage,
    ConnectedPayload,
    ErrorPayload,
    ErrorUpdate,
    GameOverPayload,
    MatchFoundPayload,
    PlayerActionRequest,
    ProjectedView,
    ServerMessage,
)
from core.lobby import ClientEvent, Lobby, ServerEvent

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_outbound(event: str, data: dict[str, Any]) -> dict[str, Any]:
    """Validate an outbound payload against its schema and wrap it in a frame."""
    model: type[BaseModel]
    if event == ServerEvent.GAME_UPDATE:
        model = ErrorUpdate if data.get("message_type") == "error" else ProjectedView
    else:
        model = {
            ServerEvent.CONNECTED: ConnectedPayload,
            ServerEvent.MATCH_FOUND: MatchFoundPayload,
            ServerEvent.GAME_OVER: GameOverPayload,
            ServerEvent.ERROR: ErrorPayload,
        }[event]
    payload = model.model_validate(data).model_dump()
    return ServerMessage(event=event, data=payload).model_dump()


class ConnectionManager:
    """Manage WebSocket connections and their outbound queues."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._outboxes: dict[str, asyncio.Queue] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a socket and assign it a connection id."""
        await websocket.accept()
        conn_id = str(uuid4())
        self._connections[conn_id] = websocket
        self._outboxes[conn_id] = asyncio.Queue()
        logger.info("User connected: %s", conn_id)
        return conn_id

    def disconnect(self, conn_id: str) -> None:
        """Remove a connection."""
        self._connections.pop(conn_id, None)
        self._outboxes.pop(conn_id, None)
        logger.info("User disconnected: %s", conn_id)

    def queue_message(self, conn_id: str, event: str, data: dict[str, Any]) -> None:
        """Queue a frame for ordered async delivery to one connection."""
        outbox = self._outboxes.get(conn_id)
        if outbox is None:
            logger.debug("Dropping %s for closed connection %s", event, conn_id)
            return
        outbox.put_nowait(serialize_outbound(event, data))

    async def pump(self, conn_id: str) -> None:
        """Send queued frames to the socket until cancelled."""
        outbox = self._outboxes[conn_id]
        websocket = self._connections[conn_id]
        while True:
            message = await outbox.get()
            await websocket.send_json(message)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager and lobby
manager = ConnectionManager()
lobby = Lobby(send=manager.queue_message)


def dispatch(conn_id: str, raw: str | bytes) -> None:
    """Parse one inbound frame and route it to the lobby."""
    try:
        message = ClientMessage.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.warning("Malformed frame from %s: %s", conn_id, e)
        manager.queue_message(conn_id, ServerEvent.ERROR, {"message": "Malformed message"})
        return

    if message.event == ClientEvent.REQUEST_MATCH:
        lobby.request_match(conn_id)
    elif message.event == ClientEvent.CANCEL_MATCHMAKING:
        lobby.cancel_matchmaking(conn_id)
    elif message.event == ClientEvent.PLAYER_ACTION:
        try:
            request = PlayerActionRequest.model_validate(message.data)
        except ValidationError as e:
            logger.warning("Bad playerAction payload from %s: %s", conn_id, e)
            manager.queue_message(conn_id, ServerEvent.ERROR, {"message": "Malformed action"})
            return
        lobby.player_action(conn_id, request.action)
    else:
        logger.warning("Unknown event %r from %s", message.event, conn_id)
        manager.queue_message(conn_id, ServerEvent.ERROR, {
            "message": f"Unknown event: {message.event}",
        })


@router.websocket("/pvp")
async def pvp_websocket(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for two-player tables.

    Messages from client:
    - {"event": "requestMatch"}
    - {"event": "cancelMatchmaking"}
    - {"event": "playerAction", "data": {"action": "hit"|"stand"}}

    Messages to client:
    - {"event": "connected", "data": {"connection_id": "..."}}
    - {"event": "matchFound", "data": {"opponent_id": "..."}}
    - {"event": "pvpGameUpdate", "data": {...projected view...}}
    - {"event": "pvpGameOver", "data": {"message", "type", "outcome", "final_game"}}
    - {"event": "error", "data": {"message": "..."}}
    """
    conn_id = await manager.connect(websocket)
    manager.queue_message(conn_id, ServerEvent.CONNECTED, {"connection_id": conn_id})

    pump_task = asyncio.create_task(manager.pump(conn_id))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Binary frames are parsed as UTF-8 JSON like text frames
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            dispatch(conn_id, data)
    except WebSocketDisconnect:
        pass
    finally:
        lobby.disconnect(conn_id)
        pump_task.cancel()
        try:
            await pump_task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Outbound pump for %s failed", conn_id)
        manager.disconnect(conn_id)
