"""
EventHub API - Main Application Entry Point

Event management backend:
- Event moderation workflow (draft -> pending approval -> published -> finished)
- Ticket issuance with capacity and one-ticket-per-user guarantees under concurrency
- Venue moderation and role-based visibility
- Redis caching of public listings, structured logging, Prometheus metrics
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventhub.api.middleware import RequestLoggingMiddleware, register_exception_handlers
from eventhub.api.router import api_router
from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger, setup_logging
from eventhub.core.metrics import metrics_endpoint
from eventhub.services.cache_service import close_redis, get_cache_stats, get_redis
from eventhub.services.event_service import run_finish_sweeper

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    sweeper = None
    if settings.FINISH_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(run_finish_sweeper(settings.FINISH_SWEEP_INTERVAL_SECONDS))
        logger.info("finish_sweeper_started", interval_seconds=settings.FINISH_SWEEP_INTERVAL_SECONDS)

    yield

    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event management API with moderated events and venues and concurrency-safe ticketing",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(api_router)
app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
