# =============================================================================
# app/routers/tasks.py - Background Task Endpoints
# =============================================================================
# Polling endpoints for listing pipelines queued with
# POST /listing-sessions/{id}/run. Clients that can't keep a websocket open
# poll GET /tasks/{task_id} until the state is SUCCESS or FAILURE.
#
# A task is visible only to the owner of the session it was queued for
# (admins see every task). Unknown and foreign ids both answer 404.
# =============================================================================

import logging
from typing import Annotated, Any

from celery.result import AsyncResult
from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel
from redis.exceptions import RedisError

from app.auth import AuthUser, get_current_user
from core.models.listing import FINAL_STEP
from core.services.listing_session_service import ListingSessionService

logger = logging.getLogger(__name__)

router = APIRouter()

TaskId = Annotated[str, Path(description="Celery task ID returned by /run")]

FINISHED_STATES = ("SUCCESS", "FAILURE", "REVOKED")

STATE_MESSAGES = {
    "PENDING": "Waiting in queue...",
    "STARTED": "Starting...",
    "REVOKED": "Cancelled",
}


# =============================================================================
# Response Models
# =============================================================================

class TaskStatusResponse(BaseModel):
    """
    Snapshot of a listing pipeline task.

    current_step counts finished steps; result is the task's return value
    once it has run (its success flag tells whether every step ran).
    """
    task_id: str
    status: str
    current_step: int = 0
    total_steps: int = FINAL_STEP
    progress: int = 0
    message: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None


def _load(task_id: str) -> tuple[AsyncResult, str]:
    """Read the task state from the result backend (503 when Redis is down)."""
    from workers.celery_app import celery_app

    result = celery_app.AsyncResult(task_id)
    try:
        status = result.status
    except RedisError as e:
        logger.error(f"Result backend unavailable while reading task {task_id}: {e}")
        raise HTTPException(status_code=503, detail=f"Task backend unavailable: {e}")
    return result, status


def _authorize(task_id: str, user: AuthUser) -> None:
    if user.is_admin:
        return
    ListingSessionService.get_by_task(task_id, user.id)


def _snapshot(task_id: str, result: AsyncResult, status: str) -> TaskStatusResponse:
    response = TaskStatusResponse(task_id=task_id, status=status, message=STATE_MESSAGES.get(status))

    if status == "PROGRESS":
        info = result.info or {}
        response.current_step = info.get("current", 0)
        response.total_steps = info.get("total", FINAL_STEP)
        response.progress = info.get("percent", 0)
        response.message = info.get("message", "Processing...")

    elif status == "SUCCESS":
        outcome = result.result or {}
        response.result = outcome
        response.current_step = outcome.get("last_step", FINAL_STEP)
        response.progress = int(response.current_step / FINAL_STEP * 100)
        if outcome.get("success", True):
            response.message = "Complete"
        else:
            response.message = "Stopped"
            response.error = outcome.get("error")

    elif status == "FAILURE":
        response.error = str(result.result) if result.result else "Unknown error"
        response.message = "Failed"

    return response


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(task_id: TaskId, user: AuthUser = Depends(get_current_user)):
    """
    Current state of a pipeline task.

    - PENDING: waiting for a worker
    - PROGRESS: running, with the number of finished steps
    - SUCCESS: the task returned; check result.success
    - FAILURE: the task crashed
    - REVOKED: cancelled
    """
    _authorize(task_id, user)
    return _snapshot(task_id, *_load(task_id))


@router.get("/{task_id}/result")
async def get_task_result(task_id: TaskId, user: AuthUser = Depends(get_current_user)):
    """The pipeline's return value, or the current state while it runs."""
    _authorize(task_id, user)
    result, status = _load(task_id)

    if status == "SUCCESS":
        return {"task_id": task_id, "status": "SUCCESS", "result": result.result}
    if status == "FAILURE":
        return {
            "task_id": task_id,
            "status": "FAILURE",
            "error": str(result.result) if result.result else "Unknown error",
        }
    return {"task_id": task_id, "status": status, "message": "Task not yet complete"}


@router.delete("/{task_id}")
async def cancel_task(task_id: TaskId, user: AuthUser = Depends(get_current_user)):
    """
    Cancel a queued or running pipeline.

    Steps already finished keep their output and their charge. A step
    interrupted mid-call is not charged; run it again to continue.
    """
    _authorize(task_id, user)
    result, status = _load(task_id)

    if status in FINISHED_STATES:
        return {
            "task_id": task_id,
            "message": f"Task already {status.lower()}, cannot cancel",
            "cancelled": False,
        }

    result.revoke(terminate=True)
    logger.info(f"Task {task_id} revoked by {user.id}")
    return {"task_id": task_id, "message": "Task cancelled", "cancelled": True}
