# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# Celery configuration and task definitions for long-running AI work.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (listing pipeline)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info -Q default,listing_pipelines
#
#   # Submit task (from API)
#   from workers.tasks import run_listing_pipeline
#   result = run_listing_pipeline.delay(session_id, user_id, email, role)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
