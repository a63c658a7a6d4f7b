# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - catalog.py: CRUD for suppliers, products, partners, tools, templates,
#   prompts and categories, plus product CSV import/export
# - agents.py: Agent configuration, prompt overrides, provider checks
# - listing_sessions.py: Amazon Listing Optimizer sessions and steps
# - credits.py: Credit balance, feature prices, transactions
# - enrichment.py: Amazon reviews/product data (RapidAPI)
# - images.py: Image upscaling and background removal (PixelCut)
# - dashboard.py: Admin and user dashboards
# - tasks.py: Background task status endpoints
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import catalog
from . import agents
from . import listing_sessions
from . import credits
from . import enrichment
from . import images
from . import dashboard
from . import tasks

__all__ = [
    "health",
    "catalog",
    "agents",
    "listing_sessions",
    "credits",
    "enrichment",
    "images",
    "dashboard",
    "tasks",
]
