"""
Driver Pydantic schemas.

Defines request and response schemas for driver registration and login.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import List

from bus_tracker.app.models.driver import Driver


class DriverRegister(BaseModel):
    """
    Schema for driver registration.

    Used by POST /driver/register. The driver id is assigned by the server.
    """
    name: str = Field(..., min_length=1, description="Driver display name")
    phone: str = Field(..., min_length=1, description="Phone number used to log in")
    license_number: str = Field(..., min_length=1, description="Driving licence / government id")
    vehicle_id: str = Field(..., min_length=1, description="Bus the driver operates")
    route_id: str = Field(..., min_length=1, description="Route the bus serves")
    device_id: str = Field(..., min_length=1, description="Identifier of the driver's device")


class DriverRegisterResponse(BaseModel):
    driver_id: str
    message: str = "Driver registered successfully"


class DriverLogin(BaseModel):
    """
    Schema for driver login.

    Used by POST /driver/login. The phone and device pair is the only credential.
    """
    phone: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1)


class DriverLoginResponse(BaseModel):
    driver_id: str
    name: str
    vehicle_id: str
    route_id: str


class DeviceIdResponse(BaseModel):
    device_id: str


class DriverSummary(BaseModel):
    """Admin view of a registered driver."""
    driver_id: str
    name: str
    phone: str
    license_number: str
    vehicle_id: str
    route_id: str
    is_online: bool
    last_seen: datetime
    has_current_location: bool

    @classmethod
    def from_driver(cls, driver: Driver) -> "DriverSummary":
        return cls(
            driver_id=driver.driver_id,
            name=driver.name,
            phone=driver.phone,
            license_number=driver.license_number,
            vehicle_id=driver.vehicle_id,
            route_id=driver.route_id,
            is_online=driver.is_online,
            last_seen=datetime.fromtimestamp(driver.last_seen, tz=timezone.utc),
            has_current_location=driver.current_location is not None,
        )


class DriverListResponse(BaseModel):
    drivers: List[DriverSummary]
    count: int


class DriverRemoveResponse(BaseModel):
    driver_id: str
    removed: bool


class DriverLogoutResponse(BaseModel):
    driver_id: str
    is_online: bool = False
    message: str = "Driver logged out"
