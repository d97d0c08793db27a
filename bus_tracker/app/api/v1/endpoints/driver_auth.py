"""
Driver Registration & Login Endpoints.

Drivers register their bus assignment and device, then log in with the
phone/device pair to start reporting locations.
"""

import uuid

from fastapi import APIRouter, Depends, Path, status

from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.core.exceptions import AuthenticationError, DriverNotFoundError
from bus_tracker.app.schemas.driver import (
    DeviceIdResponse, DriverLogin, DriverLoginResponse, DriverLogoutResponse,
    DriverRegister, DriverRegisterResponse
)
from bus_tracker.app.services.driver_registry import generate_device_id
from bus_tracker.app.services.location_tracker import LocationTracker

router = APIRouter(prefix="/driver", tags=["Driver - Authentication"])


@router.post("/register", response_model=DriverRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_driver(
    payload: DriverRegister,
    tracker: LocationTracker = Depends(get_tracker)
):
    """
    Register a new driver.

    The driver starts offline. Returns 409 if the vehicle is already assigned
    or the phone/device pair is already registered.
    """
    driver_id = tracker.register(
        driver_id=f"driver_{uuid.uuid4().hex[:12]}",
        name=payload.name,
        phone=payload.phone,
        license_number=payload.license_number,
        vehicle_id=payload.vehicle_id,
        route_id=payload.route_id,
        device_id=payload.device_id,
    )
    return DriverRegisterResponse(driver_id=driver_id)


@router.post("/login", response_model=DriverLoginResponse)
async def login_driver(
    payload: DriverLogin,
    tracker: LocationTracker = Depends(get_tracker)
):
    """
    Authenticate a driver by phone and device id.

    On success the driver is online and may submit locations.
    """
    driver = tracker.authenticate(payload.phone, payload.device_id)
    if driver is None:
        raise AuthenticationError("Invalid credentials or device not registered")

    return DriverLoginResponse(
        driver_id=driver.driver_id,
        name=driver.name,
        vehicle_id=driver.vehicle_id,
        route_id=driver.route_id,
    )


@router.post("/{driver_id}/logout", response_model=DriverLogoutResponse)
async def logout_driver(
    driver_id: str = Path(..., description="Driver ID"),
    tracker: LocationTracker = Depends(get_tracker)
):
    """Take a driver offline; its bus leaves the live map immediately."""
    if not tracker.logout(driver_id):
        raise DriverNotFoundError(driver_id)
    return DriverLogoutResponse(driver_id=driver_id)


@router.post("/device-id", response_model=DeviceIdResponse)
async def new_device_id():
    """Issue a device id for a fresh driver app installation."""
    return DeviceIdResponse(device_id=generate_device_id())
