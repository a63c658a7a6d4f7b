# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Tracks the websocket clients watching each listing session and fans
# progress events out to them.
#
# Usage:
#   from app.websocket import websocket_manager
#
#   await websocket_manager.connect(session_id, websocket)
#   await websocket_manager.broadcast(session_id, {"type": "listing_progress", ...})
#   websocket_manager.disconnect(session_id, websocket)
# =============================================================================

import logging

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Websocket connections grouped by listing session id.

    A session may be open in several browser tabs; every tab gets every event.
    """

    def __init__(self):
        self.connections: dict[str, set[WebSocket]] = {}

    @property
    def total_connections(self) -> int:
        return sum(len(sockets) for sockets in self.connections.values())

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        """Accept the socket and start tracking it under session_id."""
        await websocket.accept()
        self.connections.setdefault(session_id, set()).add(websocket)
        logger.info(
            f"WebSocket connected to listing session {session_id}. "
            f"Total connections: {self.total_connections}"
        )

    def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        sockets = self.connections.get(session_id)
        if sockets is None:
            return

        sockets.discard(websocket)
        if not sockets:
            del self.connections[session_id]

        logger.info(
            f"WebSocket disconnected from listing session {session_id}. "
            f"Total connections: {self.total_connections}"
        )

    async def broadcast(self, session_id: str, message: dict) -> int:
        """
        Send a JSON message to every client of a session.

        Sockets that fail to receive are dropped.

        Returns:
            int: Number of clients the message reached
        """
        sockets = self.connections.get(session_id)
        if not sockets:
            logger.debug(f"No connections for listing session {session_id}, skipping broadcast")
            return 0

        sent = 0
        stale: list[WebSocket] = []
        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
                sent += 1
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning(f"Dropping websocket for {session_id}: {e}")
                stale.append(websocket)

        for websocket in stale:
            self.disconnect(session_id, websocket)

        logger.debug(
            f"Broadcast {message.get('type')} to listing session {session_id}: {sent} clients"
        )
        return sent

    def get_connection_count(self, session_id: str | None = None) -> int:
        if session_id:
            return len(self.connections.get(session_id, set()))
        return self.total_connections

    def get_active_sessions(self) -> list[str]:
        return list(self.connections)


websocket_manager = ConnectionManager()
