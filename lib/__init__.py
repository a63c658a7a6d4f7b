# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable clients and utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - rapidapi_client.py: Real-Time Amazon Data API client (reviews, products)
# - pixelcut_client.py: PixelCut image API client (upscale, background removal)
# - utils.py: Shared utilities (error handling, UUID normalization, hashes)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.rapidapi_client import RapidAPIClient, RapidAPIError, extract_asin
from lib.pixelcut_client import PixelcutClient, PixelcutError
from lib.utils import ApplicationError, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Vendor clients
    "RapidAPIClient",
    "RapidAPIError",
    "extract_asin",
    "PixelcutClient",
    "PixelcutError",
    # Utils
    "ApplicationError",
    "normalize_uuid",
]
