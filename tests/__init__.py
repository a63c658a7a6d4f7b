# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the SellerHub API:
# - test_models.py: Pydantic model validation
# - test_credit_service.py: Credit ledger arithmetic and audit rows
# - test_catalog_service.py: Generic catalog CRUD and tenant isolation
# - test_import_export.py: Product CSV import/export
# - test_providers.py: AI provider dispatch and cost arithmetic
# - test_listing_pipeline.py: Amazon listing session steps
# - test_clients.py: RapidAPI and PixelCut HTTP clients
# - test_worker_tasks.py: Celery listing pipeline task
# - test_api.py: Routers through the FastAPI TestClient
#
# Run tests with: pytest
# =============================================================================
