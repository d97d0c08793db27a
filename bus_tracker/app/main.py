"""
FastAPI Application Entry Point.

This is the main application file for the Bus Tracker service.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError

from bus_tracker.app.core.config import settings
from bus_tracker.app.api.v1.router import router as api_v1_router
from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.core.observability import ObservabilityMiddleware, configure_logging
from bus_tracker.app.core.redis_client import create_redis_client, ping_redis
from bus_tracker.app.core.reliability import CircuitBreaker
from bus_tracker.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from bus_tracker.app.services.broadcaster import Broadcaster
from bus_tracker.app.services.location_tracker import LocationTracker
from bus_tracker.app.services.redis_relay import RedisLocationRelay
from bus_tracker.seed_drivers import seed_drivers

logger = logging.getLogger("bus_tracker")


def build_tracker() -> LocationTracker:
    """Create the tracker from settings."""
    return LocationTracker(
        broadcaster=Broadcaster(),
        freshness_window_seconds=settings.freshness_window_seconds,
        history_capacity=settings.history_capacity,
        offline_on_disconnect=settings.offline_on_disconnect,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates the tracker and seeds demo drivers if enabled.
    2. Starts the Redis relay if enabled, and stops it on shutdown.
    """
    configure_logging(settings.log_level)

    tracker = build_tracker()
    app.state.tracker = tracker
    if settings.seed_demo_drivers:
        seed_drivers(tracker)

    relay = None
    app.state.redis = None
    if settings.redis_publish_enabled:
        app.state.redis = create_redis_client()
        relay = RedisLocationRelay(
            app.state.redis,
            settings.redis_channel,
            breaker=CircuitBreaker(
                failure_threshold=settings.redis_failure_threshold,
                reset_timeout=settings.redis_reset_timeout,
            ),
            maxsize=settings.subscriber_queue_size,
        )
        relay.start(tracker.broadcaster)
        logger.info("Redis relay publishing on %s", settings.redis_channel)

    yield

    if relay is not None:
        await relay.stop(tracker.broadcaster)
        await app.state.redis.aclose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Real-time bus location tracking for drivers and passengers",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(tracker: LocationTracker = Depends(get_tracker)):
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and fleet counters
    """
    stats = tracker.stats()
    redis_client = getattr(app.state, "redis", None)
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "total_drivers": stats.total_drivers,
        "online_drivers": stats.online_drivers,
        "active_buses": stats.active_buses,
        "subscribers": tracker.broadcaster.subscriber_count,
        "redis": await ping_redis(redis_client) if redis_client is not None else None,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Bus Tracker API",
        "docs": "/docs",
        "health": "/health",
    }
