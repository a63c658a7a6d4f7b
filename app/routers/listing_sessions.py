# =============================================================================
# app/routers/listing_sessions.py - Amazon Listing Optimizer Endpoints
# =============================================================================
# Session lifecycle for the 4-step listing pipeline:
#   POST /                      create a session
#   PUT  /{id}/data             save product data + reviews
#   POST /{id}/steps/{step}     run one step synchronously
#   POST /{id}/run              queue the remaining steps on the worker
#   POST /{id}/abort            give up on the session
#   GET  /{id}/download         plain-text report
# All endpoints require authentication; sessions are private to their owner.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import PlainTextResponse

from agents.listing_optimizer import FEATURE_KEY, ListingOptimizerAgent
from app.auth import AuthUser, get_current_user
from app.exceptions import InvalidPayloadError, ListingSessionAbortedError, ListingStepOrderError
from core.models.listing import (
    FINAL_STEP,
    LISTING_STEPS,
    ListingProductData,
    ListingRunResponse,
    ListingSessionCreate,
    ListingSessionList,
    ListingSessionResponse,
    ListingStatus,
    ListingStepResult,
)
from core.services.credit_service import CreditService
from core.services.listing_session_service import ListingSessionService

logger = logging.getLogger(__name__)

router = APIRouter()

SessionId = Annotated[UUID, Path(description="Listing session UUID")]


# =============================================================================
# Session CRUD
# =============================================================================

@router.post("", response_model=ListingSessionResponse, status_code=201)
async def create_session(
    request: ListingSessionCreate | None = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a new listing session.

    Product data may be sent now or later with PUT /{id}/data.
    """
    session = ListingSessionService.create_session(
        user.id,
        product=request.product if request else None,
    )
    return ListingSessionResponse(**session)


@router.get("", response_model=ListingSessionList)
async def list_sessions(
    user: AuthUser = Depends(get_current_user),
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
):
    """List the caller's sessions, newest first."""
    rows, total = ListingSessionService.list_for_user(user.id, page=page, page_size=page_size)
    return ListingSessionList(
        sessions=[ListingSessionResponse(**row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{session_id}", response_model=ListingSessionResponse)
async def get_session(session_id: SessionId, user: AuthUser = Depends(get_current_user)):
    session = ListingSessionService.get_session(str(session_id), user.id)
    return ListingSessionResponse(**session)


@router.put("/{session_id}/data", response_model=ListingSessionResponse)
async def update_product_data(
    session_id: SessionId,
    product: ListingProductData,
    user: AuthUser = Depends(get_current_user),
):
    """
    Save the product data the steps run on.

    product_name, brand, category, keywords and reviews_data are required.
    """
    session = ListingSessionService.update_product_data(str(session_id), user.id, product)
    return ListingSessionResponse(**session)


@router.post("/{session_id}/abort", response_model=ListingSessionResponse)
async def abort_session(session_id: SessionId, user: AuthUser = Depends(get_current_user)):
    session = ListingSessionService.abort_session(str(session_id), user.id)
    logger.info(f"Listing session {session_id} aborted by {user.id}")
    return ListingSessionResponse(**session)


# =============================================================================
# Step Execution
# =============================================================================

@router.post("/{session_id}/steps/{step}", response_model=ListingStepResult)
async def run_step(
    session_id: SessionId,
    step: Annotated[int, Path(ge=1, le=FINAL_STEP, description="Step number (1-4)")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Run one step and wait for the LLM.

    Steps must run in order: each step reads the previous step's output.
    Credits are charged only when the step succeeds.
    """
    return ListingOptimizerAgent().run_step(str(session_id), user, step)


@router.post("/{session_id}/run", response_model=ListingRunResponse, status_code=202)
async def run_pipeline(session_id: SessionId, user: AuthUser = Depends(get_current_user)):
    """
    Queue every remaining step on the background worker.

    Progress is pushed on /ws/listing-sessions/{id} and can be polled with
    GET /api/v1/tasks/{task_id}.
    """
    session = ListingSessionService.get_session(str(session_id), user.id)
    if session.get("status") == ListingStatus.ABORTED.value:
        raise ListingSessionAbortedError(str(session_id))

    start_step = ListingOptimizerAgent.next_step(session)
    if start_step > FINAL_STEP:
        raise InvalidPayloadError("All listing steps are already completed", {"session_id": str(session_id)})

    requires = LISTING_STEPS[start_step].requires
    if not session.get(requires):
        raise ListingStepOrderError(start_step, requires)

    # Fail fast on an empty balance instead of queueing a doomed task
    CreditService.require_access(user, FEATURE_KEY)

    try:
        from workers.tasks import run_listing_pipeline

        result = run_listing_pipeline.delay(
            str(session_id),
            str(user.id),
            user.email,
            user.role.value,
        )
    except Exception as e:
        logger.error(f"Error queueing listing pipeline for {session_id}: {e}")
        raise HTTPException(
            status_code=503,
            detail=f"Failed to queue the listing pipeline. Is Redis running? Error: {e}",
        )

    ListingSessionService.attach_task(str(session_id), result.id)
    logger.info(f"Queued listing pipeline for {session_id} from step {start_step} (task {result.id})")
    return ListingRunResponse(
        session_id=session_id,
        task_id=result.id,
        start_step=start_step,
        message=f"Running steps {start_step}-{FINAL_STEP} in the background",
    )


# =============================================================================
# Download
# =============================================================================

@router.get("/{session_id}/download", response_class=PlainTextResponse)
async def download_listing(session_id: SessionId, user: AuthUser = Depends(get_current_user)):
    """
    Download the generated listing as a text report.

    Available once the reviews analysis and titles exist.
    """
    session = ListingSessionService.get_session(str(session_id), user.id)
    text = ListingSessionService.build_download_text(session)
    filename = ListingSessionService.download_filename(session)
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
