# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the FastAPI web application:
# - main.py: App entry point, middleware setup, error handlers
# - config.py: Environment variable loading and settings
# - exceptions.py: API exceptions and their JSON handlers
# - auth/: Supabase JWT verification and roles
# - routers/: API endpoint definitions organized by feature
# - websocket/: Live listing progress
#
# The app layer is thin - it handles HTTP concerns and delegates
# business logic to the core/ package.
# =============================================================================
