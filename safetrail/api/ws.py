"""WebSocket endpoint for live session events."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from safetrail.core.deps import get_registry
from safetrail.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, registry: SessionRegistry = Depends(get_registry)):
    """
    WebSocket endpoint. Client connects with ?user_id=<id>.
    Server pushes events: risk.updated, sos.phase_changed
    """
    raw = websocket.query_params.get("user_id")
    if not raw:
        await websocket.close(code=4001, reason="Missing user_id")
        return
    try:
        user_id = int(raw)
    except ValueError:
        await websocket.close(code=4003, reason="Invalid user_id")
        return

    connections = registry.connections
    await connections.connect(websocket, user_id)
    try:
        while True:
            # Keep connection alive; client can send pings
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"event":"pong"}')
    except WebSocketDisconnect:
        pass
    finally:
        connections.disconnect(websocket, user_id)
