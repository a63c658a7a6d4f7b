# =============================================================================
# app/websocket/broadcast.py - Cross-Process Event Publishing
# =============================================================================
# Listing steps can run inside the API process or on a Celery worker. Both
# publish progress through Redis pub/sub; the API lifespan task subscribes
# to WEBSOCKET_CHANNEL and forwards each event to the websocket clients
# watching that listing session.
#
# Events:
#   - listing_progress: a step started, finished or failed
#   - pipeline_complete: every remaining step finished
#   - pipeline_failed: a queued pipeline run stopped on an error
# =============================================================================

import json
import logging
from typing import Any

import redis

from app.config import settings

logger = logging.getLogger(__name__)

WEBSOCKET_CHANNEL = "sellerhub:websocket:events"


def get_redis_client() -> redis.Redis:
    """Get a Redis client for pub/sub operations."""
    return redis.from_url(settings.REDIS_URL)


def publish_event(session_id: str, event_type: str, data: dict[str, Any]) -> bool:
    """
    Publish an event for the websocket clients of one listing session.

    Progress events are best effort: when Redis is down the step still
    runs, clients simply see the result on their next poll.

    Returns:
        bool: True if published successfully
    """
    message = json.dumps({
        "session_id": str(session_id),
        "type": event_type,
        **data
    }, default=str)

    try:
        get_redis_client().publish(WEBSOCKET_CHANNEL, message)
    except redis.RedisError as e:
        logger.warning(f"Failed to publish {event_type} for session {session_id}: {e}")
        return False

    logger.debug(f"Published {event_type} event for session {session_id}")
    return True


def publish_listing_progress(
    session_id: str,
    step: int,
    status: str,
    message: str,
) -> bool:
    """
    Publish a listing_progress event.

    Args:
        status: "processing", "completed" or "error"
    """
    return publish_event(
        session_id=session_id,
        event_type="listing_progress",
        data={"step": step, "status": status, "message": message},
    )


def publish_pipeline_complete(session_id: str, task_id: str, last_step: int) -> bool:
    return publish_event(
        session_id=session_id,
        event_type="pipeline_complete",
        data={"task_id": task_id, "status": "SUCCESS", "last_step": last_step},
    )


def publish_pipeline_failed(session_id: str, task_id: str, error: str) -> bool:
    return publish_event(
        session_id=session_id,
        event_type="pipeline_failed",
        data={"task_id": task_id, "status": "FAILURE", "error": error},
    )
