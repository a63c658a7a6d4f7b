# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Real-time progress for Amazon listing sessions.
#
# Usage:
#   # Broadcast to the clients of a session (inside FastAPI)
#   from app.websocket import websocket_manager
#   await websocket_manager.broadcast(session_id, {"type": "listing_progress", ...})
#
#   # Publish from anywhere, including Celery workers
#   from app.websocket.broadcast import publish_listing_progress
#   publish_listing_progress(session_id, step=2, status="completed", message="Titles ready")
# =============================================================================

from app.websocket.manager import websocket_manager
from app.websocket.broadcast import (
    publish_event,
    publish_listing_progress,
    publish_pipeline_complete,
    publish_pipeline_failed,
    WEBSOCKET_CHANNEL,
)

__all__ = [
    "websocket_manager",
    "publish_event",
    "publish_listing_progress",
    "publish_pipeline_complete",
    "publish_pipeline_failed",
    "WEBSOCKET_CHANNEL",
]
