# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    """Platform roles. Admins manage hub content and use metered features for free."""
    ADMIN = "admin"
    USER = "user"


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    The role comes from the token's `app_metadata.role` claim, which only the
    service key can set.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserResponse(BaseModel):
    """Profile row from the public.users table."""
    id: UUID
    email: Optional[str] = None
    name: Optional[str] = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
