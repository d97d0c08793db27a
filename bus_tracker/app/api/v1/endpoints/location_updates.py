"""
Driver Location API Endpoints.

Drivers submit GPS fixes; the server timestamps them.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Path, Query

from bus_tracker.app.core.config import settings
from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.core.exceptions import DriverNotFoundError, ResourceNotFoundError
from bus_tracker.app.schemas.location import (
    HistoryPoint, HistoryResponse, LocationResponse, LocationUpdate, LocationUpdateResponse
)
from bus_tracker.app.services.location_tracker import LocationTracker

router = APIRouter(prefix="/driver", tags=["Driver - Location"])


@router.post("/location", response_model=LocationUpdateResponse)
async def submit_location(
    payload: LocationUpdate,
    tracker: LocationTracker = Depends(get_tracker)
):
    """
    Record a driver location fix.

    Returns 400 for implausible coordinates or accuracy and 404 for an
    unknown driver.
    """
    accepted = tracker.update(payload.driver_id, payload.to_sample(payload.driver_id))
    if accepted is None:
        raise DriverNotFoundError(payload.driver_id)

    return LocationUpdateResponse(
        success=True,
        timestamp=datetime.fromtimestamp(accepted.timestamp, tz=timezone.utc),
    )


@router.get("/{driver_id}/location", response_model=LocationResponse)
async def get_driver_location(
    driver_id: str = Path(..., description="Driver ID"),
    tracker: LocationTracker = Depends(get_tracker)
):
    """Last accepted fix for a driver, fresh or not."""
    location = tracker.get_current(driver_id)
    if location is None:
        raise ResourceNotFoundError("Driver location", driver_id)
    return LocationResponse.from_sample(location)


@router.get("/{driver_id}/history", response_model=HistoryResponse)
async def get_driver_history(
    driver_id: str = Path(..., description="Driver ID"),
    limit: int = Query(settings.default_history_limit, ge=1, le=settings.history_capacity),
    tracker: LocationTracker = Depends(get_tracker)
):
    """Most recent fixes for a driver, oldest first."""
    driver = tracker.get_driver(driver_id)
    if driver is None:
        raise DriverNotFoundError(driver_id)

    history = tracker.get_history(driver_id, limit)
    return HistoryResponse(
        driver_id=driver_id,
        vehicle_id=driver.vehicle_id,
        history=[HistoryPoint.from_sample(s) for s in history],
        count=len(history),
    )
