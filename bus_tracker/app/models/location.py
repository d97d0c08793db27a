"""
Location sample model.

Immutable GPS fix reported by a driver and stamped by the server.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class LocationStatus(str, enum.Enum):
    """
    Operating status reported alongside a fix.

    Statuses:
        ACTIVE: Bus is running its route
        IDLE: Bus is stopped (terminal, layover)
        OFFLINE: Driver app reports going off duty
    """
    ACTIVE = "active"
    IDLE = "idle"
    OFFLINE = "offline"


@dataclass(frozen=True)
class LocationSample:
    """
    A single accepted GPS fix.

    Samples are never mutated; a newer fix replaces the driver's current
    reference and is appended to history.
    """
    driver_id: str
    vehicle_id: str
    route_id: str
    latitude: Optional[float]
    longitude: Optional[float]
    heading: float = 0.0
    speed: float = 0.0
    accuracy: Optional[float] = None  # meters
    status: LocationStatus = LocationStatus.ACTIVE
    timestamp: float = 0.0  # epoch seconds, server clock
