# =============================================================================
# lib/rapidapi_client.py - Real-Time Amazon Data (RapidAPI) Client
# =============================================================================
# Thin httpx wrapper around the RapidAPI "Real-Time Amazon Data" endpoints
# used to enrich listings:
# - product-reviews: competitor reviews fed to listing step 1
# - product-details: title, price, rating and photos for an ASIN
# - search: keyword search results
#
# Every response is checked for `status == "OK"`; anything else raises
# RapidAPIError.
#
# Usage:
#   from lib.rapidapi_client import RapidAPIClient, extract_asin
#   client = RapidAPIClient()
#   reviews = client.get_product_reviews(extract_asin(url), country="BR")
# =============================================================================

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

ASIN_PATTERN = re.compile(r"^[A-Z0-9]{10}$")
ASIN_URL_PATTERNS = (
    re.compile(r"/dp/([A-Z0-9]{10})", re.IGNORECASE),
    re.compile(r"/gp/product/([A-Z0-9]{10})", re.IGNORECASE),
    re.compile(r"/product-reviews/([A-Z0-9]{10})", re.IGNORECASE),
)

SORT_OPTIONS = ("TOP_REVIEWS", "MOST_RECENT")


class RapidAPIError(ApplicationError):
    """Raised when a RapidAPI call fails or returns a non-OK status."""

    def __init__(self, message: str, status_code: int | None = None, code: str = "RAPIDAPI_ERROR", **kwargs):
        super().__init__(message, code=code, **kwargs)
        self.status_code = status_code


def extract_asin(value: str) -> str | None:
    """
    Pull a 10-character ASIN out of a bare ASIN or an Amazon URL.

    Example:
        extract_asin("https://www.amazon.com.br/dp/B08N5WRWNW?th=1")  # "B08N5WRWNW"
        extract_asin("b08n5wrwnw")                                    # "B08N5WRWNW"
        extract_asin("not an asin")                                   # None
    """
    text = (value or "").strip()
    if ASIN_PATTERN.match(text.upper()):
        return text.upper()

    for pattern in ASIN_URL_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).upper()
    return None


class RapidAPIClient:
    """
    Client for the Real-Time Amazon Data API.

    Args:
        api_key: RapidAPI key (default: settings.RAPIDAPI_KEY)
        http_client: Optional preconfigured httpx.Client (tests pass a MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        host: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.RAPIDAPI_KEY
        self.host = host or settings.RAPIDAPI_HOST
        self._http = http_client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise RapidAPIError(
                "RapidAPI key is not configured",
                code="RAPIDAPI_NOT_CONFIGURED",
                suggestion="Set RAPIDAPI_KEY in the environment",
            )

        url = f"https://{self.host}/{path}"
        headers = {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": self.host}

        try:
            response = self._http.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise RapidAPIError(f"Request to {path} failed: {e}", details={"path": path})

        if response.status_code >= 400:
            logger.error(f"RapidAPI {path} returned {response.status_code}: {response.text[:200]}")
            raise RapidAPIError(
                f"{path} returned HTTP {response.status_code}",
                status_code=response.status_code,
                suggestion="Check the RapidAPI subscription quota" if response.status_code == 429 else None,
                details={"path": path, "params": params},
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error(f"RapidAPI {path} returned a non-JSON body: {response.text[:200]}")
            raise RapidAPIError(
                f"{path} returned an unreadable response",
                code="RAPIDAPI_BAD_RESPONSE",
                details={"path": path, "params": params},
            )
        if data.get("status") != "OK":
            raise RapidAPIError(
                f"{path} returned status {data.get('status')!r}",
                details={"path": path, "params": params},
            )
        return data.get("data") or {}

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def get_product_reviews(
        self,
        asin: str,
        country: str = "BR",
        page: int = 1,
        sort_by: str = "MOST_RECENT",
    ) -> list[dict[str, str]]:
        """
        Fetch one page of reviews, reduced to title, rating and comment.

        Returns:
            List of {"review_title", "review_star_rating", "review_comment"}
        """
        if sort_by not in SORT_OPTIONS:
            raise RapidAPIError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}", code="INVALID_SORT")

        data = self._get("product-reviews", {
            "asin": asin,
            "country": country,
            "page": str(page),
            "sort_by": sort_by,
            "star_rating": "ALL",
            "verified_purchases_only": "false",
            "images_or_videos_only": "false",
            "current_format_only": "false",
        })

        reviews = [
            {
                "review_title": review.get("review_title") or "",
                "review_star_rating": str(review.get("review_star_rating") or ""),
                "review_comment": review.get("review_comment") or "",
            }
            for review in data.get("reviews", [])
        ]
        logger.info(f"Fetched {len(reviews)} reviews for {asin} (page {page}, {country})")
        return reviews

    def get_product_details(self, asin: str, country: str = "BR") -> dict[str, Any]:
        return self._get("product-details", {"asin": asin, "country": country})

    def search_products(
        self,
        query: str,
        country: str = "BR",
        page: int = 1,
        sort_by: str = "RELEVANCE",
    ) -> dict[str, Any]:
        """
        Keyword search.

        Returns:
            {"total_products": int, "products": [...]}
        """
        data = self._get("search", {
            "query": query,
            "country": country,
            "page": str(page),
            "sort_by": sort_by,
            "product_condition": "NEW",
        })
        return {
            "total_products": data.get("total_products", 0),
            "products": data.get("products", []),
        }


def format_reviews_for_prompt(reviews: list[dict[str, str]]) -> str:
    """Flatten reviews into the text block listing step 1 expects."""
    lines = []
    for review in reviews:
        rating = review.get("review_star_rating") or "?"
        lines.append(f"[{rating} stars] {review.get('review_title', '').strip()}")
        comment = review.get("review_comment", "").strip()
        if comment:
            lines.append(comment)
        lines.append("")
    return "\n".join(lines).strip()
