"""Per-user WebSocket fan-out for live session events."""

import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def encode_event(event: str, data: Any) -> str:
    """JSON envelope {event, data, sent_at}. Enums and datetimes go out as strings."""
    return json.dumps(
        {"event": event, "data": data, "sent_at": datetime.now(timezone.utc).isoformat()},
        default=str,
    )


class ConnectionManager:
    """Sockets grouped by user. One user may hold several (phone and watch, two tabs)."""

    def __init__(self) -> None:
        self._sockets: defaultdict[int, set[WebSocket]] = defaultdict(set)

    @property
    def total_connections(self) -> int:
        return sum(len(s) for s in self._sockets.values())

    def is_connected(self, user_id: int) -> bool:
        return bool(self._sockets.get(user_id))

    async def connect(self, websocket: WebSocket, user_id: int) -> None:
        await websocket.accept()
        self._sockets[user_id].add(websocket)
        logger.info("WS connected: user=%s (total=%s)", user_id, self.total_connections)

    def disconnect(self, websocket: WebSocket, user_id: int) -> None:
        sockets = self._sockets.get(user_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._sockets[user_id]
        logger.info("WS disconnected: user=%s (total=%s)", user_id, self.total_connections)

    async def send_to_user(self, user_id: int, event: str, data: Any) -> int:
        """Deliver an event to every socket of the user. Returns how many received it.

        A socket that fails a send is forgotten.
        """
        sockets = self._sockets.get(user_id)
        if not sockets:
            return 0
        payload = encode_event(event, data)
        delivered = 0
        for ws in list(sockets):
            try:
                await ws.send_text(payload)
            except Exception as e:
                logger.debug("Dropping WS for user=%s after failed send: %s", user_id, e)
                self.disconnect(ws, user_id)
                continue
            delivered += 1
        return delivered

    async def close_all(self, code: int = 1001) -> None:
        """Close every socket (server going away)."""
        for user_id, sockets in list(self._sockets.items()):
            for ws in list(sockets):
                try:
                    await ws.close(code=code)
                except Exception as e:
                    logger.debug("WS close failed for user=%s: %s", user_id, e)
        self._sockets.clear()
