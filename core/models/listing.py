# =============================================================================
# core/models/listing.py - Amazon Listing Session Schemas
# =============================================================================
# A listing session walks one product through four generation steps:
#   1. reviews analysis  -> reviews_insight
#   2. titles            -> titles
#   3. bullet points     -> bullet_points
#   4. description       -> description
#
# Each step reads the previous step's output from the session row and
# writes its own output back to it.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import NamedTuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ListingStatus(str, Enum):
    """
    Listing session states.

    - active: idle, waiting for data or the next step
    - processing: a step is calling the LLM
    - completed: all four steps produced output
    - aborted: the user gave up on this session

    Flow: active -> processing -> active ... -> completed
    """
    ACTIVE = "active"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class ListingStep(NamedTuple):
    number: int
    name: str
    requires: str
    output: str


LISTING_STEPS: dict[int, ListingStep] = {
    1: ListingStep(1, "reviews_analysis", "reviews_data", "reviews_insight"),
    2: ListingStep(2, "titles", "reviews_insight", "titles"),
    3: ListingStep(3, "bullet_points", "titles", "bullet_points"),
    4: ListingStep(4, "description", "bullet_points", "description"),
}

FINAL_STEP = max(LISTING_STEPS)

REQUIRED_PRODUCT_FIELDS = ("product_name", "brand", "category", "keywords", "reviews_data")


class ListingProductData(BaseModel):
    """
    Product information the user fills in before running the steps.

    Every field is optional here so partial saves are possible; the service
    checks REQUIRED_PRODUCT_FIELDS before accepting the data.

    Example:
        {
            "product_name": "Garrafa Térmica 1L",
            "brand": "Acme",
            "category": "Casa e Cozinha",
            "keywords": "garrafa térmica, inox",
            "reviews_data": "5 estrelas - mantém o café quente..."
        }
    """

    product_name: str | None = Field(default=None, max_length=255)
    brand: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=255)
    keywords: str | None = Field(default=None, description="Main keywords, comma-separated")
    long_tail_keywords: str | None = None
    main_features: str | None = None
    target_audience: str | None = None
    asin: str | None = Field(default=None, max_length=10)
    reviews_data: str | None = Field(
        default=None,
        description="Competitor reviews pasted or fetched from RapidAPI"
    )


class ListingSessionCreate(BaseModel):
    """Optional product data sent with session creation."""
    product: ListingProductData | None = None


class ListingSessionResponse(BaseModel):
    """Listing session row as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    session_hash: str
    status: ListingStatus
    current_step: int = Field(default=0, ge=0, le=FINAL_STEP)

    product_name: str | None = None
    brand: str | None = None
    category: str | None = None
    keywords: str | None = None
    long_tail_keywords: str | None = None
    main_features: str | None = None
    target_audience: str | None = None
    asin: str | None = None
    reviews_data: str | None = None

    reviews_insight: str | None = None
    titles: str | None = None
    bullet_points: str | None = None
    description: str | None = None

    provider: str | None = None
    model: str | None = None
    task_id: str | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None


class ListingSessionList(BaseModel):
    sessions: list[ListingSessionResponse]
    total: int
    page: int
    page_size: int


class ListingStepResult(BaseModel):
    """Outcome of one processed step."""
    session_id: UUID
    step: int
    status: ListingStatus
    output: str
    provider: str
    model: str
    credits_charged: int = 0
    cost_usd: float = 0.0


class ListingRunResponse(BaseModel):
    """Returned when the remaining steps are queued on the worker."""
    session_id: UUID
    task_id: str
    start_step: int
    message: str
