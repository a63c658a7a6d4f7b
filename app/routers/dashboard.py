# =============================================================================
# app/routers/dashboard.py - Dashboard Endpoints
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user, require_admin
from core.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/admin")
async def admin_dashboard(user: AuthUser = Depends(require_admin)):
    """Platform-wide row counts and AI spend (admin only)."""
    return DashboardService.admin_stats()


@router.get("/me")
async def user_dashboard(user: AuthUser = Depends(get_current_user)):
    """Balance, recent transactions, this month's AI usage and recommendations."""
    return DashboardService.user_summary(user.id)
