# =============================================================================
# core/models/credit.py - Credit Ledger Schemas
# =============================================================================
# Credits meter feature usage. A user's balance lives in
# user_credit_balance; every movement is audited in credit_transactions;
# feature prices live in feature_costs.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class CreditBalance(BaseModel):
    """Current balance plus lifetime totals."""
    user_id: UUID
    current_balance: int = 0
    total_earned: int = 0
    total_spent: int = 0


class FeatureCost(BaseModel):
    """Price of one metered feature."""
    feature_key: str = Field(..., description="Dotted key, e.g. tools.amazon_reviews")
    feature_name: str
    category: str | None = None
    credit_cost: int = Field(..., ge=0)
    is_active: bool = True


class AccessCheck(BaseModel):
    """Whether a user may run a feature right now."""
    feature_key: str
    has_access: bool
    cost: int
    balance: int
    is_free: bool = Field(default=False, description="True for admins")


class DebitResult(BaseModel):
    feature_key: str
    charged: int
    balance_after: int
    transaction_id: UUID | None = None


class CreditTransaction(BaseModel):
    id: UUID
    user_id: UUID
    type: TransactionType
    amount: int
    description: str | None = None
    feature_key: str | None = None
    reference_id: str | None = None
    balance_after: int
    created_at: datetime | None = None


class DebitRequest(BaseModel):
    """Body of POST /credits/debit."""
    feature_key: str = Field(..., min_length=1)
    description: str | None = Field(default=None, max_length=500)
    reference_id: str | None = None


class CreditGrantRequest(BaseModel):
    """Body of the admin grant endpoint."""
    user_id: UUID
    amount: int = Field(..., gt=0)
    description: str = Field(default="Manual credit grant", max_length=500)
