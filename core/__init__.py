# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the business logic behind the routers:
# - models/: Pydantic schemas for data validation
# - services/: Catalog CRUD, credit ledger, agents, listing sessions,
#   CSV import/export, dashboards
#
# Services raise app.exceptions errors and never touch Request/Response
# objects, so they run the same inside the API and the Celery worker.
# =============================================================================
