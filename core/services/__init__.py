# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .agent_service import AgentService
from .catalog_service import RESOURCES, CatalogResource, CatalogService, get_resource
from .credit_service import CreditService
from .dashboard_service import DashboardService
from .generation_log_service import GenerationLogService
from .import_export_service import ImportExportService
from .listing_session_service import ListingSessionService
from .tool_service import MeteredResult, ToolService

__all__ = [
    "AgentService",
    "CatalogResource",
    "CatalogService",
    "CreditService",
    "DashboardService",
    "GenerationLogService",
    "ImportExportService",
    "ListingSessionService",
    "MeteredResult",
    "RESOURCES",
    "ToolService",
    "get_resource",
]
