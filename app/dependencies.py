# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends(); tests replace
# them through app.dependency_overrides.
# =============================================================================

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from lib.pixelcut_client import PixelcutClient
from lib.rapidapi_client import RapidAPIClient


@lru_cache
def get_rapidapi_client() -> RapidAPIClient:
    """Shared Real-Time Amazon Data client (one pooled httpx.Client)."""
    return RapidAPIClient()


@lru_cache
def get_pixelcut_client() -> PixelcutClient:
    """Shared PixelCut client (one pooled httpx.Client)."""
    return PixelcutClient()


# Type aliases for dependency injection
RapidAPIDep = Annotated[RapidAPIClient, Depends(get_rapidapi_client)]
PixelcutDep = Annotated[PixelcutClient, Depends(get_pixelcut_client)]
