# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Signup/login happen client-side through Supabase Auth. These routes
# return the profile behind a token and check token validity.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current user's profile.

    Falls back to the token claims when the public.users row
    has not been created yet.
    """
    row = SupabaseClient.fetch_one("users", {"id": user.id})
    if row:
        # The token is the source of truth for the role
        return UserResponse(**{**row, "role": user.role})

    logger.info(f"No users row yet for {user.id}; answering from token claims")
    return UserResponse(id=user.id, email=user.email, role=user.role)


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """Confirm that the bearer token is valid."""
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role.value,
    }
