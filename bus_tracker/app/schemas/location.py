"""
Location tracking schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import List, Optional

from bus_tracker.app.models.driver import Driver
from bus_tracker.app.models.location import LocationSample, LocationStatus


def _utc(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class LocationSubmit(BaseModel):
    """
    Schema for a driver location fix.

    Coordinates and accuracy are range-checked by the location validator so
    that every implausible fix is reported the same way. Any client
    timestamp is ignored.
    """
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    heading: float = 0.0
    speed: float = 0.0
    accuracy: Optional[float] = Field(None, description="GPS accuracy in meters")
    status: LocationStatus = LocationStatus.ACTIVE
    vehicle_id: Optional[str] = None
    route_id: Optional[str] = None

    def to_sample(self, driver_id: str) -> LocationSample:
        return LocationSample(
            driver_id=driver_id,
            vehicle_id=self.vehicle_id or "",
            route_id=self.route_id or "",
            latitude=self.latitude,
            longitude=self.longitude,
            heading=self.heading,
            speed=self.speed,
            accuracy=self.accuracy,
            status=self.status,
        )


class LocationUpdate(LocationSubmit):
    """Schema for POST /driver/location."""
    driver_id: str = Field(..., min_length=1)


class LocationUpdateResponse(BaseModel):
    success: bool
    message: str = "Location updated successfully"
    timestamp: datetime


class LocationResponse(BaseModel):
    """GPS location response."""
    driver_id: str
    vehicle_id: str
    route_id: str
    latitude: float
    longitude: float
    heading: float
    speed: float
    accuracy: Optional[float]
    status: LocationStatus
    timestamp: datetime

    @classmethod
    def from_sample(cls, sample: LocationSample) -> "LocationResponse":
        return cls(
            driver_id=sample.driver_id,
            vehicle_id=sample.vehicle_id,
            route_id=sample.route_id,
            latitude=sample.latitude,
            longitude=sample.longitude,
            heading=sample.heading,
            speed=sample.speed,
            accuracy=sample.accuracy,
            status=sample.status,
            timestamp=_utc(sample.timestamp),
        )


class BusPosition(BaseModel):
    """Passenger view of a live bus."""
    vehicle_id: str
    route_id: str
    latitude: float
    longitude: float
    heading: float
    speed: float
    status: LocationStatus
    last_update: datetime
    distance_km: Optional[float] = None

    @classmethod
    def from_sample(cls, sample: LocationSample, distance_km: Optional[float] = None) -> "BusPosition":
        return cls(
            vehicle_id=sample.vehicle_id,
            route_id=sample.route_id,
            latitude=sample.latitude,
            longitude=sample.longitude,
            heading=sample.heading,
            speed=sample.speed,
            status=sample.status,
            last_update=_utc(sample.timestamp),
            distance_km=round(distance_km, 3) if distance_km is not None else None,
        )


class LiveBusesResponse(BaseModel):
    buses: List[BusPosition]
    count: int
    timestamp: datetime


class BusLocationResponse(BaseModel):
    """Current location of one bus, with its driver's state."""
    vehicle_id: str
    route_id: str
    driver_name: str
    location: LocationResponse
    is_online: bool
    last_seen: datetime

    @classmethod
    def from_driver(cls, driver: Driver) -> "BusLocationResponse":
        return cls(
            vehicle_id=driver.vehicle_id,
            route_id=driver.route_id,
            driver_name=driver.name,
            location=LocationResponse.from_sample(driver.current_location),
            is_online=driver.is_online,
            last_seen=_utc(driver.last_seen),
        )


class HistoryPoint(BaseModel):
    latitude: float
    longitude: float
    heading: float
    speed: float
    status: LocationStatus
    timestamp: datetime

    @classmethod
    def from_sample(cls, sample: LocationSample) -> "HistoryPoint":
        return cls(
            latitude=sample.latitude,
            longitude=sample.longitude,
            heading=sample.heading,
            speed=sample.speed,
            status=sample.status,
            timestamp=_utc(sample.timestamp),
        )


class HistoryResponse(BaseModel):
    driver_id: str
    vehicle_id: str
    history: List[HistoryPoint]
    count: int
