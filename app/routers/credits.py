# =============================================================================
# app/routers/credits.py - Credit Ledger Endpoints
# =============================================================================
# Balance, prices, access checks and the transaction history of the
# caller; granting credits is admin-only.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user, require_admin
from core.models.credit import (
    AccessCheck,
    CreditBalance,
    CreditGrantRequest,
    CreditTransaction,
    DebitRequest,
    DebitResult,
    FeatureCost,
)
from core.services.credit_service import CreditService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/balance", response_model=CreditBalance)
async def get_balance(user: AuthUser = Depends(get_current_user)):
    """Current balance plus lifetime earned/spent. Users without a row get zeros."""
    return CreditService.get_balance(user.id)


@router.get("/features", response_model=list[FeatureCost])
async def list_features(
    category: Annotated[str | None, Query(description="Filter by category, e.g. agents or tools")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """Active metered features and their credit cost."""
    return CreditService.list_feature_costs(category)


@router.get("/check-access/{feature_key}", response_model=AccessCheck)
async def check_access(
    feature_key: Annotated[str, Path(description="Feature key, e.g. tools.amazon_reviews")],
    user: AuthUser = Depends(get_current_user),
):
    """Whether the caller can afford the feature right now. Never charges."""
    return CreditService.check_access(user, feature_key)


@router.post("/debit", response_model=DebitResult)
async def debit(request: DebitRequest, user: AuthUser = Depends(get_current_user)):
    """
    Record the use of a metered feature that runs outside this API.

    Returns 402 without touching the balance when it cannot cover the cost.
    """
    return CreditService.debit(
        user,
        request.feature_key,
        description=request.description,
        reference_id=request.reference_id,
    )


@router.get("/transactions", response_model=list[CreditTransaction])
async def list_transactions(
    limit: Annotated[int, Query(ge=1, le=100, description="Max transactions")] = 20,
    user: AuthUser = Depends(get_current_user),
):
    """The caller's transactions, newest first."""
    return CreditService.list_transactions(user.id, limit=limit)


@router.post("/grant", response_model=CreditBalance)
async def grant_credits(request: CreditGrantRequest, admin: AuthUser = Depends(require_admin)):
    """Add credits to any user (admin only)."""
    balance = CreditService.credit(
        request.user_id,
        request.amount,
        request.description,
        reference_id=f"admin:{admin.id}",
    )
    logger.info(f"Admin {admin.id} granted {request.amount} credits to {request.user_id}")
    return balance
