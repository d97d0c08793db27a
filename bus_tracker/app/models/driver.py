"""
Driver model.

Registry record binding a driver to a vehicle, a route and a device.
"""

from dataclasses import dataclass
from typing import Optional

from bus_tracker.app.models.location import LocationSample


@dataclass
class Driver:
    """
    Driver registry record.

    Mutated only by the tracker while it holds its lock:
    - authenticate sets is_online and refreshes last_seen
    - every accepted update refreshes last_seen and replaces current_location
    """
    driver_id: str
    name: str
    phone: str
    license_number: str
    vehicle_id: str
    route_id: str
    device_id: str  # Device possession is the only credential
    is_online: bool = False
    last_seen: float = 0.0  # epoch seconds
    current_location: Optional[LocationSample] = None

    def __repr__(self):
        return f"<Driver(driver_id={self.driver_id}, vehicle_id={self.vehicle_id}, online={self.is_online})>"
