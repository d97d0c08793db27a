"""
Driver registry.

Authoritative mapping of driver identity to vehicle/route assignment and
online state, with a vehicle id reverse index.

The registry holds no lock of its own: LocationTracker serialises every call
under its store-wide lock.
"""

import dataclasses
import secrets
import time
from typing import Dict, Iterator, List, Optional

from bus_tracker.app.core.exceptions import DriverConflictError
from bus_tracker.app.core.observability import report_integrity_warning
from bus_tracker.app.models.driver import Driver


def generate_device_id(now: Optional[float] = None) -> str:
    """Generate a device id for a new driver app installation."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"device_{millis}_{secrets.token_hex(4)}"


class DriverRegistry:

    def __init__(self):
        # dicts keep insertion order, which authenticate relies on
        self._drivers: Dict[str, Driver] = {}
        self._by_vehicle: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._drivers)

    def register(self, driver: Driver) -> str:
        """
        Add a driver.

        Rejects, rather than overwrites, a driver that collides with an
        existing one on driver id, vehicle id or (phone, device id).

        Raises:
            DriverConflictError: on any collision
        """
        if driver.driver_id in self._drivers:
            raise DriverConflictError(
                f"Driver {driver.driver_id} is already registered", "driver_id", driver.driver_id
            )
        if driver.vehicle_id in self._by_vehicle:
            raise DriverConflictError(
                f"Vehicle {driver.vehicle_id} is already assigned to another driver",
                "vehicle_id", driver.vehicle_id
            )
        if self._find_by_credentials(driver.phone, driver.device_id):
            raise DriverConflictError(
                "This phone and device are already registered", "device_id", driver.device_id
            )

        self._drivers[driver.driver_id] = driver
        self._by_vehicle[driver.vehicle_id] = driver.driver_id
        return driver.driver_id

    def _find_by_credentials(self, phone: str, device_id: str) -> List[Driver]:
        return [
            d for d in self._drivers.values()
            if d.phone == phone and d.device_id == device_id
        ]

    def authenticate(self, phone: str, device_id: str, now: float) -> Optional[Driver]:
        """
        Match phone and device id; the first registered match goes online.

        Returns:
            The matched driver record, or None
        """
        matches = self._find_by_credentials(phone, device_id)
        if not matches:
            return None
        if len(matches) > 1:
            report_integrity_warning(
                "Multiple drivers share one phone/device pair",
                driver_ids=[d.driver_id for d in matches],
            )

        driver = matches[0]
        driver.is_online = True
        driver.last_seen = now
        return driver

    def set_offline(self, driver_id: str) -> bool:
        driver = self._drivers.get(driver_id)
        if driver is None:
            return False
        driver.is_online = False
        return True

    def get(self, driver_id: str) -> Optional[Driver]:
        return self._drivers.get(driver_id)

    def lookup_by_vehicle(self, vehicle_id: str) -> Optional[Driver]:
        driver_id = self._by_vehicle.get(vehicle_id)
        if driver_id is None:
            return None
        return self._drivers.get(driver_id)

    def remove(self, driver_id: str) -> bool:
        driver = self._drivers.pop(driver_id, None)
        if driver is None:
            return False
        self._by_vehicle.pop(driver.vehicle_id, None)
        return True

    def __iter__(self) -> Iterator[Driver]:
        return iter(self._drivers.values())

    def list_all(self) -> List[Driver]:
        """Copies of every record, safe to read after the lock is released."""
        return [dataclasses.replace(d) for d in self._drivers.values()]
