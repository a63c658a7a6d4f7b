# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the SellerHub API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import asyncio
import json
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.exceptions import (
    SellerHubException,
    sellerhub_exception_handler,
    unhandled_exception_handler,
)
from app.routers import (
    agents,
    catalog,
    credits,
    dashboard,
    enrichment,
    health,
    images,
    listing_sessions,
    tasks,
)
from app.auth import routes as auth_routes
from app.websocket import WEBSOCKET_CHANNEL, websocket_manager
from app.websocket import routes as websocket_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Global handles for the Redis listener task
_redis_listener_task = None
_shutdown_event = None


async def redis_pubsub_listener():
    """
    Background task that listens to Redis pub/sub and broadcasts to WebSockets.

    Celery workers can't reach the API's websocket connections directly, so
    they publish listing events to Redis and this task forwards them to the
    clients connected to the matching session.
    """
    logger.info("Starting Redis pub/sub listener for WebSocket broadcasts")

    redis_client = aioredis.from_url(settings.REDIS_URL)
    pubsub = redis_client.pubsub()

    try:
        await pubsub.subscribe(WEBSOCKET_CHANNEL)

        async for message in pubsub.listen():
            if _shutdown_event and _shutdown_event.is_set():
                break

            if message["type"] != "message":
                continue

            try:
                data = json.loads(message["data"])
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON in Redis message: {e}")
                continue

            session_id = data.pop("session_id", None)
            if session_id:
                await websocket_manager.broadcast(session_id, data)
                logger.debug(f"Broadcast {data.get('type')} to session {session_id}")

    except asyncio.CancelledError:
        logger.info("Redis pub/sub listener cancelled")
    except RedisError as e:
        # The API keeps serving without live progress; clients can poll tasks
        logger.error(f"Redis pub/sub listener stopped: {e}")
    finally:
        try:
            await pubsub.unsubscribe(WEBSOCKET_CHANNEL)
            await redis_client.aclose()
        except RedisError as e:
            logger.debug(f"Redis cleanup failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log configuration, start the Redis listener
    - Shutdown: stop the Redis listener
    """
    global _redis_listener_task, _shutdown_event

    logger.info(f"Starting SellerHub API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    _shutdown_event = asyncio.Event()
    _redis_listener_task = asyncio.create_task(redis_pubsub_listener())

    yield

    logger.info("Shutting down SellerHub API")

    if _shutdown_event:
        _shutdown_event.set()
    if _redis_listener_task:
        _redis_listener_task.cancel()
        try:
            await _redis_listener_task
        except asyncio.CancelledError:
            pass


# Create FastAPI application
app = FastAPI(
    title="SellerHub API",
    description="""
## Marketplace Seller Hub

Back office for marketplace sellers: catalog management, a credit-metered
toolbox and AI agents that write product listings.

### Amazon Listing Optimizer

1. **Create a session** - `POST /api/v1/listing-sessions`
2. **Save product data** - name, brand, category, keywords and competitor reviews
3. **Run the steps** - reviews analysis → titles → bullet points → description
4. **Download** - plain-text report with the whole listing

Steps run one at a time (`POST .../steps/{n}`) or all at once on the
background worker (`POST .../run`), with live progress on
`/ws/listing-sessions/{id}`.

### Credits

Every AI step and every external tool call costs credits. Nothing is
charged when a call fails. Administrators use everything for free.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify tokens and read the current profile"},
        {"name": "Catalog", "description": "Product CSV import and export"},
        {"name": "Agents", "description": "AI agent configuration and provider checks"},
        {"name": "Listing Sessions", "description": "Amazon Listing Optimizer"},
        {"name": "Credits", "description": "Balance, prices and transactions"},
        {"name": "Enrichment", "description": "Amazon reviews and product data"},
        {"name": "Images", "description": "Image upscaling and background removal"},
        {"name": "Dashboard", "description": "Admin and user dashboards"},
        {"name": "Tasks", "description": "Track background task progress"},
        {"name": "WebSocket", "description": "Real-time listing progress"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(SellerHubException, sellerhub_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints (router carries the /auth prefix)
app.include_router(auth_routes.router, prefix="/api/v1")

# Health check endpoints
app.include_router(health.router, prefix="/api/v1", tags=["Health"])

# Catalog CRUD (tags are set per resource)
app.include_router(catalog.router, prefix="/api/v1/catalog")

# Agent configuration
app.include_router(agents.router, prefix="/api/v1/agents", tags=["Agents"])

# Amazon Listing Optimizer
app.include_router(
    listing_sessions.router,
    prefix="/api/v1/listing-sessions",
    tags=["Listing Sessions"]
)

# Credit ledger
app.include_router(credits.router, prefix="/api/v1/credits", tags=["Credits"])

# RapidAPI enrichment tools
app.include_router(enrichment.router, prefix="/api/v1/enrichment", tags=["Enrichment"])

# PixelCut image tools
app.include_router(images.router, prefix="/api/v1/images", tags=["Images"])

# Dashboards
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])

# Task status endpoints
app.include_router(tasks.router, prefix="/api/v1/tasks", tags=["Tasks"])

# WebSocket endpoints (Real-time updates)
app.include_router(websocket_routes.router, tags=["WebSocket"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "SellerHub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
