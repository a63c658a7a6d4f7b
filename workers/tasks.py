# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background tasks for AI processing.
#
# Tasks:
# - run_listing_pipeline: Run the remaining Amazon listing steps for a session
# =============================================================================

import logging
from typing import Any

from celery import current_task, shared_task

from agents.listing_optimizer import ListingOptimizerAgent
from app.auth.models import AuthUser, UserRole
from app.exceptions import SellerHubException
from app.websocket.broadcast import publish_pipeline_complete, publish_pipeline_failed
from core.models.listing import FINAL_STEP, ListingStepResult

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100),
                "message": message,
            }
        )


# =============================================================================
# Listing Pipeline Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.run_listing_pipeline")
def run_listing_pipeline(
    self,
    session_id: str,
    user_id: str,
    email: str | None = None,
    role: str = UserRole.USER.value,
) -> dict[str, Any]:
    """
    Run every listing step that hasn't produced output yet.

    The caller's identity travels as plain values since task arguments are
    JSON-serialized. Each finished step updates the task's PROGRESS state;
    the websocket channel receives per-step events from the agent plus a
    final pipeline event from here.

    Args:
        session_id: Listing session UUID
        user_id: Owner of the session (credits are charged to this user)
        email: Owner's email, for logging only
        role: "admin" or "user"

    Returns:
        Dict with:
        - success: bool
        - session_id: The session UUID
        - steps: Per-step results (step, provider, model, credits, cost)
        - last_step: Highest completed step
        - error / code: Present when a step failed
    """
    task_id = self.request.id
    user = AuthUser(id=user_id, email=email, role=UserRole(role))
    agent = ListingOptimizerAgent()

    logger.info(f"Listing pipeline started for session {session_id} (task {task_id})")
    update_progress(0, FINAL_STEP, "Starting listing pipeline...")

    completed: list[ListingStepResult] = []

    def on_step(step: int, result: ListingStepResult) -> None:
        completed.append(result)
        update_progress(step, FINAL_STEP, f"Step {step} of {FINAL_STEP} completed")

    try:
        agent.run_remaining(session_id, user, on_step=on_step)
    except SellerHubException as e:
        last_step = completed[-1].step if completed else 0
        logger.warning(f"Listing pipeline for {session_id} stopped after step {last_step}: {e.code}")
        publish_pipeline_failed(session_id, task_id, e.message)
        return {
            "success": False,
            "session_id": session_id,
            "steps": [r.model_dump(mode="json") for r in completed],
            "last_step": last_step,
            "error": e.message,
            "code": e.code,
        }
    except Exception as e:
        logger.exception(f"Listing pipeline for {session_id} crashed")
        publish_pipeline_failed(session_id, task_id, str(e))
        raise

    last_step = completed[-1].step if completed else 0
    publish_pipeline_complete(session_id, task_id, last_step)
    logger.info(f"Listing pipeline finished for session {session_id}: {len(completed)} step(s) run")

    return {
        "success": True,
        "session_id": session_id,
        "steps": [r.model_dump(mode="json") for r in completed],
        "last_step": last_step,
    }
