# =============================================================================
# app/routers/enrichment.py - Amazon Data Enrichment Endpoints
# =============================================================================
# Wraps the Real-Time Amazon Data API (RapidAPI). Every call except ASIN
# validation is credit-metered and written to the generation log.
#
# Feature keys:
# - tools.amazon_reviews
# - tools.product_details
# - tools.keyword_search
# =============================================================================

import logging
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user
from app.dependencies import RapidAPIDep
from app.exceptions import InvalidASINError
from core.services.tool_service import ToolService
from lib.rapidapi_client import extract_asin, format_reviews_for_prompt

logger = logging.getLogger(__name__)

router = APIRouter()

PROVIDER = "rapidapi"
REVIEWS_FEATURE = "tools.amazon_reviews"
DETAILS_FEATURE = "tools.product_details"
SEARCH_FEATURE = "tools.keyword_search"


# =============================================================================
# Request Models
# =============================================================================

class ReviewsRequest(BaseModel):
    asin: str = Field(..., min_length=10, description="ASIN or Amazon product URL")
    country: str = Field(default="BR", min_length=2, max_length=2)
    page: int = Field(default=1, ge=1, le=10)
    sort_by: Literal["TOP_REVIEWS", "MOST_RECENT"] = "MOST_RECENT"


class ProductDetailsRequest(BaseModel):
    asin: str = Field(..., min_length=10, description="ASIN or Amazon product URL")
    country: str = Field(default="BR", min_length=2, max_length=2)


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=2, max_length=200)
    country: str = Field(default="BR", min_length=2, max_length=2)
    page: int = Field(default=1, ge=1, le=20)


class ValidateASINRequest(BaseModel):
    value: str = Field(..., description="ASIN or Amazon product URL")


def _require_asin(value: str) -> str:
    asin = extract_asin(value)
    if not asin:
        raise InvalidASINError(value)
    return asin


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/reviews")
async def get_reviews(
    request: ReviewsRequest,
    client: RapidAPIDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Fetch one page of product reviews.

    The response also carries the reviews flattened into the text block
    that a listing session's reviews_data field expects.
    """
    asin = _require_asin(request.asin)
    metered = ToolService.run_metered(
        user,
        REVIEWS_FEATURE,
        PROVIDER,
        lambda: client.get_product_reviews(asin, request.country, request.page, request.sort_by),
        request_summary=f"reviews {asin} {request.country} page {request.page} {request.sort_by}",
        reference_id=asin,
    )
    reviews = metered.result
    return {
        "asin": asin,
        "country": request.country,
        "page": request.page,
        "count": len(reviews),
        "reviews": reviews,
        "reviews_text": format_reviews_for_prompt(reviews),
        "credits_charged": metered.debit.charged,
        "balance_after": metered.debit.balance_after,
    }


@router.post("/product-details")
async def get_product_details(
    request: ProductDetailsRequest,
    client: RapidAPIDep,
    user: AuthUser = Depends(get_current_user),
):
    asin = _require_asin(request.asin)
    metered = ToolService.run_metered(
        user,
        DETAILS_FEATURE,
        PROVIDER,
        lambda: client.get_product_details(asin, request.country),
        request_summary=f"product-details {asin} {request.country}",
        reference_id=asin,
    )
    return {
        "asin": asin,
        "country": request.country,
        "product": metered.result,
        "credits_charged": metered.debit.charged,
        "balance_after": metered.debit.balance_after,
    }


@router.post("/search")
async def search_products(
    request: SearchRequest,
    client: RapidAPIDep,
    user: AuthUser = Depends(get_current_user),
):
    """Keyword search, useful for finding competitor ASINs."""
    metered = ToolService.run_metered(
        user,
        SEARCH_FEATURE,
        PROVIDER,
        lambda: client.search_products(request.query, request.country, request.page),
        request_summary=f"search {request.query!r} {request.country} page {request.page}",
    )
    return {
        "query": request.query,
        "country": request.country,
        "page": request.page,
        **metered.result,
        "credits_charged": metered.debit.charged,
        "balance_after": metered.debit.balance_after,
    }


@router.post("/validate-asin")
async def validate_asin(request: ValidateASINRequest, user: AuthUser = Depends(get_current_user)):
    """Extract an ASIN from a URL or check a bare one. Free."""
    asin = extract_asin(request.value)
    return {"valid": asin is not None, "asin": asin}
