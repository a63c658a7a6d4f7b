# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health        process is up (load balancers)
# /health/live   same, for orchestrators that separate liveness
# /health/ready  dependencies a seller request needs:
#   - database: Supabase answers and the listing optimizer has a price
#   - redis: broker / result backend / websocket bridge answers PING
#   - providers: which LLM vendors have an API key (informational; only the
#     provider of the default model is required)
# =============================================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from redis.exceptions import RedisError

from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    """
    status is "ready" only when every entry in checks is "healthy";
    a missing price or an unreachable Redis reports "degraded".
    """
    status: str
    checks: dict[str, str]
    providers: dict[str, bool]
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_pricing() -> str:
    from agents.listing_optimizer import FEATURE_KEY
    from app.exceptions import FeatureCostNotFoundError
    from core.services.credit_service import CreditService
    from lib.supabase_client import SupabaseClientError

    try:
        CreditService.get_feature_cost(FEATURE_KEY)
    except FeatureCostNotFoundError:
        return f"unhealthy: no active price for {FEATURE_KEY}"
    except SupabaseClientError as e:
        return f"unhealthy: {e.message[:80]}"
    return "healthy"


def _check_redis() -> str:
    from app.websocket.broadcast import get_redis_client

    try:
        get_redis_client().ping()
    except RedisError as e:
        return f"unhealthy: {str(e)[:80]}"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """Check Supabase, listing pricing, Redis and LLM provider keys."""
    from agents.providers import AIProviderService

    providers = AIProviderService().provider_status()
    checks = {
        "database": _check_pricing(),
        "redis": _check_redis(),
        "default_provider": "healthy" if providers.get("openai") else "unhealthy: OPENAI_API_KEY is not set",
    }

    degraded = [name for name, state in checks.items() if state != "healthy"]
    if degraded:
        logger.warning(f"Readiness degraded: {', '.join(degraded)}")

    return ReadinessResponse(
        status="degraded" if degraded else "ready",
        checks=checks,
        providers=providers,
        timestamp=_now(),
    )


@router.get("/health/live")
async def liveness_check():
    return {"status": "alive", "timestamp": _now()}
