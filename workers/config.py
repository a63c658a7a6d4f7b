# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Applied to the Celery app via app.config_from_object().
#
# Listing pipelines run on their own queue; "default" only carries the
# worker healthcheck. Time limits scale with the number of listing steps.
# =============================================================================

from app.config import settings
from core.models.listing import FINAL_STEP

DEFAULT_QUEUE = "default"
LISTING_QUEUE = "listing_pipelines"

# One listing step is a single LLM call with a long prompt
STEP_TIME_LIMIT_SECONDS = 210


class CeleryConfig:

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL

    # A pipeline interrupted by a worker crash is redelivered; steps that
    # already stored output are skipped on the rerun
    task_acks_late = True
    task_reject_on_worker_lost = True
    worker_prefetch_multiplier = 1

    # Clients poll /tasks/{id} for at most a day after queueing
    result_expires = 24 * 3600
    result_extended = True

    task_soft_time_limit = FINAL_STEP * STEP_TIME_LIMIT_SECONDS
    task_time_limit = task_soft_time_limit + 60

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    task_default_queue = DEFAULT_QUEUE
    task_routes = {
        "workers.tasks.run_listing_pipeline": {"queue": LISTING_QUEUE},
    }

    task_track_started = True
    worker_send_task_events = True
    task_send_sent_event = True

    timezone = "UTC"
    enable_utc = True
