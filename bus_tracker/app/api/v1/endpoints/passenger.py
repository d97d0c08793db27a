"""
Passenger Live Bus Endpoints.

Read-only views of the fleet: the live map, nearby buses and per-bus
location and history.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from bus_tracker.app.core.config import settings
from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.core.exceptions import ResourceNotFoundError, VehicleNotFoundError
from bus_tracker.app.schemas.location import (
    BusLocationResponse, BusPosition, HistoryPoint, HistoryResponse, LiveBusesResponse
)
from bus_tracker.app.services.location_tracker import LocationTracker

router = APIRouter(tags=["Passenger - Live Buses"])


def _now(tracker: LocationTracker) -> datetime:
    return datetime.fromtimestamp(tracker.clock(), tz=timezone.utc)


@router.get("/buses/live", response_model=LiveBusesResponse)
async def get_live_buses(tracker: LocationTracker = Depends(get_tracker)):
    """
    All active buses.

    A bus is listed while its driver is logged in and has reported within
    the freshness window.
    """
    samples = tracker.get_active_set()
    return LiveBusesResponse(
        buses=[BusPosition.from_sample(s) for s in samples],
        count=len(samples),
        timestamp=_now(tracker),
    )


@router.get("/buses/nearby", response_model=LiveBusesResponse)
async def get_nearby_buses(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0, le=50),
    tracker: LocationTracker = Depends(get_tracker)
):
    """Active buses within radius_km of the passenger, closest first."""
    radius = radius_km if radius_km is not None else settings.nearby_radius_km
    matches = tracker.nearby(latitude, longitude, radius)
    return LiveBusesResponse(
        buses=[BusPosition.from_sample(s, d) for s, d in matches],
        count=len(matches),
        timestamp=_now(tracker),
    )


@router.get("/buses/nearest", response_model=BusPosition)
async def get_nearest_bus(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    tracker: LocationTracker = Depends(get_tracker)
):
    """The single closest active bus."""
    match = tracker.nearest_active(latitude, longitude)
    if match is None:
        raise ResourceNotFoundError("Active bus")
    sample, distance = match
    return BusPosition.from_sample(sample, distance)


@router.get("/bus/{vehicle_id}/location", response_model=BusLocationResponse)
async def get_bus_location(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    tracker: LocationTracker = Depends(get_tracker)
):
    """Current location of one bus, even if its driver has gone quiet."""
    driver = tracker.lookup_by_vehicle(vehicle_id)
    if driver is None or driver.current_location is None:
        raise VehicleNotFoundError(vehicle_id)
    return BusLocationResponse.from_driver(driver)


@router.get("/bus/{vehicle_id}/history", response_model=HistoryResponse)
async def get_bus_history(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    limit: int = Query(settings.default_history_limit, ge=1, le=settings.history_capacity),
    tracker: LocationTracker = Depends(get_tracker)
):
    """Recent trail of one bus, oldest first."""
    driver = tracker.lookup_by_vehicle(vehicle_id)
    if driver is None:
        raise VehicleNotFoundError(vehicle_id)

    history = tracker.get_history(driver.driver_id, limit)
    return HistoryResponse(
        driver_id=driver.driver_id,
        vehicle_id=vehicle_id,
        history=[HistoryPoint.from_sample(s) for s in history],
        count=len(history),
    )
