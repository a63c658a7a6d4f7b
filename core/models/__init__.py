# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - catalog.py: suppliers, products, partners, tools, templates, prompts
# - listing.py: Amazon listing session schemas and step table
# - credit.py: credit balance, feature costs and transactions
# - agent.py: agent configuration, prompt overrides and generation logs
#
# These models define the "contract" between API and clients.
# =============================================================================

from .agent import (
    AgentConfig,
    AgentPrompt,
    AgentPromptUpdate,
    AgentUpdate,
    GenerationLog,
    ProviderName,
    ProviderTestRequest,
)
from .catalog import (
    CategoryCreate,
    CategoryUpdate,
    ImportConflict,
    ImportResult,
    ImportRowError,
    Page,
    PartnerCreate,
    PartnerUpdate,
    ProductCreate,
    ProductUpdate,
    PromptCreate,
    PromptUpdate,
    SupplierCreate,
    SupplierUpdate,
    TemplateCreate,
    TemplateUpdate,
    ToolCreate,
    ToolUpdate,
)
from .credit import (
    AccessCheck,
    CreditBalance,
    CreditGrantRequest,
    CreditTransaction,
    DebitRequest,
    DebitResult,
    FeatureCost,
    TransactionType,
)
from .listing import (
    FINAL_STEP,
    LISTING_STEPS,
    REQUIRED_PRODUCT_FIELDS,
    ListingProductData,
    ListingRunResponse,
    ListingSessionCreate,
    ListingSessionList,
    ListingSessionResponse,
    ListingStatus,
    ListingStep,
    ListingStepResult,
)

__all__ = [
    # Agent
    "AgentConfig",
    "AgentPrompt",
    "AgentPromptUpdate",
    "AgentUpdate",
    "GenerationLog",
    "ProviderName",
    "ProviderTestRequest",
    # Catalog
    "CategoryCreate",
    "CategoryUpdate",
    "ImportConflict",
    "ImportResult",
    "ImportRowError",
    "Page",
    "PartnerCreate",
    "PartnerUpdate",
    "ProductCreate",
    "ProductUpdate",
    "PromptCreate",
    "PromptUpdate",
    "SupplierCreate",
    "SupplierUpdate",
    "TemplateCreate",
    "TemplateUpdate",
    "ToolCreate",
    "ToolUpdate",
    # Credit
    "AccessCheck",
    "CreditBalance",
    "CreditGrantRequest",
    "CreditTransaction",
    "DebitRequest",
    "DebitResult",
    "FeatureCost",
    "TransactionType",
    # Listing
    "FINAL_STEP",
    "LISTING_STEPS",
    "REQUIRED_PRODUCT_FIELDS",
    "ListingProductData",
    "ListingRunResponse",
    "ListingSessionCreate",
    "ListingSessionList",
    "ListingSessionResponse",
    "ListingStatus",
    "ListingStep",
    "ListingStepResult",
]
