# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# The worker runs listing pipelines queued by
# POST /api/v1/listing-sessions/{id}/run. Settings come from app.config (the
# same .env as the API) through workers.config.CeleryConfig.
#
# Usage:
#   celery -A workers.celery_app worker --loglevel=info -Q default,listing_pipelines
#   celery -A workers.celery_app inspect active
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, worker_ready

from app.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_celery_app() -> Celery:
    app = Celery("sellerhub_worker", include=["workers.tasks"])
    app.config_from_object("workers.config:CeleryConfig")
    return app


celery_app = create_celery_app()


@celery_app.task(name="workers.healthcheck")
def healthcheck() -> str:
    return "OK"


def _session_of(args, kwargs) -> str:
    """Session id of a run_listing_pipeline call, for log lines."""
    if kwargs and kwargs.get("session_id"):
        return kwargs["session_id"]
    return args[0] if args else "-"


# =============================================================================
# Signals
# =============================================================================

@worker_ready.connect
def worker_ready_handler(sender=None, **extra):
    # Never log credentials embedded in the URL
    broker = settings.REDIS_URL.split("@")[-1]
    logger.info(f"SellerHub worker ready ({settings.ENVIRONMENT}), broker {broker}")


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    logger.info(f"{task.name} [{task_id}] started for session {_session_of(args, kwargs)}")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, retval=None, state=None, **extra):
    if isinstance(retval, dict) and "last_step" in retval:
        outcome = "complete" if retval.get("success") else f"stopped ({retval.get('code')})"
        logger.info(f"{task.name} [{task_id}] {state}: listing {outcome} at step {retval['last_step']}")
    else:
        logger.info(f"{task.name} [{task_id}] {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, args=None, kwargs=None, **extra):
    logger.error(f"{sender.name} [{task_id}] crashed for session {_session_of(args, kwargs)}: {exception}")


if __name__ == "__main__":
    celery_app.start()
