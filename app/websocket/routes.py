# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# Live progress for Amazon listing sessions.
#
# Connect: ws://host/ws/listing-sessions/{session_id}?token={jwt}
#
# Events:
#   - {"type": "listing_progress", "step": 2, "status": "processing", "message": "..."}
#   - {"type": "pipeline_complete", "task_id": "...", "last_step": 4}
#   - {"type": "pipeline_failed", "task_id": "...", "error": "..."}
# =============================================================================

import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from app.auth.dependencies import decode_access_token
from app.websocket.manager import websocket_manager
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/listing-sessions/{session_id}")
async def listing_session_websocket(
    websocket: WebSocket,
    session_id: str,
    token: str = Query(..., description="JWT token for authentication")
):
    """
    Stream progress events for one listing session.

    The token is passed as a query parameter because browsers can't set
    headers on websocket requests. Only the session owner may connect.

    Close codes:
        4001 invalid token, 4003 not the owner, 4004 unknown session, 4000 server error
    """
    try:
        user = decode_access_token(token)
    except HTTPException as e:
        logger.warning(f"WebSocket auth failed: {e.detail}")
        await websocket.close(code=4001, reason="Invalid token")
        return

    try:
        session = SupabaseClient.fetch_one(
            "amazon_listing_sessions",
            {"id": session_id},
            columns="id, user_id",
        )
    except SupabaseClientError as e:
        logger.error(f"WebSocket: error fetching listing session: {e}")
        await websocket.close(code=4000, reason="Server error")
        return

    if not session:
        await websocket.close(code=4004, reason="Session not found")
        return

    if str(session.get("user_id")) != str(user.id):
        logger.warning(f"WebSocket access denied: user {user.id} on session {session_id}")
        await websocket.close(code=4003, reason="Access denied")
        return

    await websocket_manager.connect(session_id, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "session_id": session_id,
            "message": "Connected to listing session updates"
        })

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"WebSocket received: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected from listing session {session_id}")
    finally:
        websocket_manager.disconnect(session_id, websocket)


@router.get("/ws/status")
async def websocket_status():
    """Connection counts per listing session."""
    sessions = websocket_manager.get_active_sessions()
    return {
        "total_connections": websocket_manager.get_connection_count(),
        "active_sessions": sessions,
        "session_count": len(sessions)
    }
