"""
Admin API Endpoints.

Driver roster and removal.
"""

from fastapi import APIRouter, Depends, Path

from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.core.exceptions import DriverNotFoundError
from bus_tracker.app.schemas.driver import DriverListResponse, DriverRemoveResponse, DriverSummary
from bus_tracker.app.services.location_tracker import LocationTracker

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/drivers", response_model=DriverListResponse)
async def list_drivers(tracker: LocationTracker = Depends(get_tracker)):
    """List every registered driver in registration order."""
    drivers = tracker.list_drivers()
    return DriverListResponse(
        drivers=[DriverSummary.from_driver(d) for d in drivers],
        count=len(drivers),
    )


@router.delete("/driver/{driver_id}", response_model=DriverRemoveResponse)
async def remove_driver(
    driver_id: str = Path(..., description="Driver ID"),
    tracker: LocationTracker = Depends(get_tracker)
):
    """
    Remove a driver.

    Also discards its current location and history. Returns 404 if the
    driver is not registered (including when it was already removed).
    """
    if not tracker.remove(driver_id):
        raise DriverNotFoundError(driver_id)
    return DriverRemoveResponse(driver_id=driver_id, removed=True)
