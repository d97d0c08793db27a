"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bus_tracker.app.api.v1.endpoints import (
    driver_auth, location_updates, passenger, admin, ws_tracking
)

router = APIRouter()

# Driver endpoints
router.include_router(driver_auth.router)
router.include_router(location_updates.router)

# Passenger endpoints
router.include_router(passenger.router)

# Admin endpoints
router.include_router(admin.router)

# Real-time streams
router.include_router(ws_tracking.router)
