"""
Location tracker.

The in-memory tracking store: driver registration and authentication,
location ingestion, active-set derivation, history and nearest-bus queries.

One instance is created per process (see main.lifespan) and injected into
request handlers. Every operation that touches driver state runs under a
single store-wide lock; the lock is never held across I/O. Broadcasting to
subscribers happens after the lock is released.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

from bus_tracker.app.core.observability import report_integrity_warning
from bus_tracker.app.models.driver import Driver
from bus_tracker.app.models.location import LocationSample
from bus_tracker.app.services import geo
from bus_tracker.app.services.broadcaster import Broadcaster
from bus_tracker.app.services.driver_registry import DriverRegistry
from bus_tracker.app.services.location_history import LocationHistory
from bus_tracker.app.services.location_validator import validate

logger = logging.getLogger("bus_tracker")

DEFAULT_FRESHNESS_WINDOW_SECONDS = 120.0


@dataclass(frozen=True)
class TrackerStats:
    total_drivers: int
    online_drivers: int
    active_buses: int


def _sample_point(sample: LocationSample):
    return sample.latitude, sample.longitude


class LocationTracker:

    def __init__(
        self,
        broadcaster: Optional[Broadcaster] = None,
        clock: Callable[[], float] = time.time,
        freshness_window_seconds: float = DEFAULT_FRESHNESS_WINDOW_SECONDS,
        history_capacity: int = 100,
        offline_on_disconnect: bool = False,
    ):
        self.broadcaster = broadcaster or Broadcaster()
        self.clock = clock
        self.freshness_window_seconds = freshness_window_seconds
        self.offline_on_disconnect = offline_on_disconnect
        self.registry = DriverRegistry()
        self.history = LocationHistory(capacity=history_capacity)
        self._lock = threading.RLock()
        self._sessions: Dict[str, List[Callable[[], None]]] = {}

    # Registry operations

    def register(
        self,
        driver_id: str,
        name: str,
        phone: str,
        license_number: str,
        vehicle_id: str,
        route_id: str,
        device_id: str,
    ) -> str:
        """
        Register a driver in the offline state.

        Raises:
            DriverConflictError: duplicate driver id, vehicle id or phone/device pair
        """
        driver = Driver(
            driver_id=driver_id,
            name=name,
            phone=phone,
            license_number=license_number,
            vehicle_id=vehicle_id,
            route_id=route_id,
            device_id=device_id,
            is_online=False,
            last_seen=self.clock(),
        )
        with self._lock:
            self.registry.register(driver)
        logger.info("Driver registered", extra={"driver_id": driver_id, "vehicle_id": vehicle_id})
        return driver_id

    def authenticate(self, phone: str, device_id: str) -> Optional[Driver]:
        """Bring the matching driver online. Returns a snapshot, or None."""
        with self._lock:
            driver = self.registry.authenticate(phone, device_id, self.clock())
            snapshot = replace(driver) if driver else None
        if snapshot:
            logger.info("Driver authenticated", extra={"driver_id": snapshot.driver_id})
        return snapshot

    def logout(self, driver_id: str) -> bool:
        with self._lock:
            return self.registry.set_offline(driver_id)

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        with self._lock:
            driver = self.registry.get(driver_id)
            return replace(driver) if driver else None

    def lookup_by_vehicle(self, vehicle_id: str) -> Optional[Driver]:
        with self._lock:
            driver = self.registry.lookup_by_vehicle(vehicle_id)
            return replace(driver) if driver else None

    def list_drivers(self) -> List[Driver]:
        with self._lock:
            return self.registry.list_all()

    def remove(self, driver_id: str) -> bool:
        """
        Remove a driver together with its current location and history.

        Open driver sessions are told to close once the lock is released.
        """
        with self._lock:
            removed = self.registry.remove(driver_id)
            self.history.purge(driver_id)
            sessions = self._sessions.pop(driver_id, [])
        if removed:
            logger.info("Driver removed", extra={"driver_id": driver_id})
        for on_removed in sessions:
            on_removed()
        return removed

    # Location store operations

    def update(self, driver_id: str, sample: LocationSample) -> Optional[LocationSample]:
        """
        Accept a location fix for a registered driver.

        The sample is validated first, then stamped with the server clock
        and the driver's registered vehicle and route. Current location and
        history change together under the lock; subscribers are notified
        afterwards.

        Returns:
            The stored sample, or None if the driver is not registered

        Raises:
            LocationValidationError: implausible coordinates or accuracy
        """
        validate(sample)

        with self._lock:
            driver = self.registry.get(driver_id)
            if driver is None:
                return None

            if sample.vehicle_id and sample.vehicle_id != driver.vehicle_id:
                report_integrity_warning(
                    "Location payload vehicle does not match driver assignment",
                    driver_id=driver_id,
                    reported_vehicle_id=sample.vehicle_id,
                    vehicle_id=driver.vehicle_id,
                )

            now = self.clock()
            accepted = replace(
                sample,
                driver_id=driver_id,
                vehicle_id=driver.vehicle_id,
                route_id=driver.route_id,
                timestamp=now,
            )
            driver.current_location = accepted
            driver.last_seen = now
            self.history.append(driver_id, accepted)

        self.broadcaster.notify(accepted)
        return accepted

    def get_current(self, driver_id: str) -> Optional[LocationSample]:
        with self._lock:
            driver = self.registry.get(driver_id)
            return driver.current_location if driver else None

    def _is_fresh(self, driver: Driver, now: float) -> bool:
        return (
            driver.is_online
            and driver.current_location is not None
            and now - driver.last_seen < self.freshness_window_seconds
        )

    def get_active_set(self) -> List[LocationSample]:
        """
        Current samples of online drivers heard from within the freshness window.

        Computed on every call, in registration order.
        """
        with self._lock:
            now = self.clock()
            return [d.current_location for d in self.registry if self._is_fresh(d, now)]

    def get_history(self, driver_id: str, limit: int = 50) -> List[LocationSample]:
        with self._lock:
            return self.history.get(driver_id, limit)

    def nearby(self, latitude: float, longitude: float, radius_km: float) -> List[Tuple[LocationSample, float]]:
        """Active buses within radius_km, closest first."""
        return geo.within_radius((latitude, longitude), self.get_active_set(), radius_km, key=_sample_point)

    def nearest_active(self, latitude: float, longitude: float) -> Optional[Tuple[LocationSample, float]]:
        return geo.nearest((latitude, longitude), self.get_active_set(), key=_sample_point)

    def stats(self) -> TrackerStats:
        with self._lock:
            now = self.clock()
            drivers = list(self.registry)
            return TrackerStats(
                total_drivers=len(self.registry),
                online_drivers=sum(1 for d in drivers if d.is_online),
                active_buses=sum(1 for d in drivers if self._is_fresh(d, now)),
            )

    # Subscriber lifecycle

    def driver_disconnected(self, driver_id: str) -> bool:
        """
        React to a driver's transport session closing.

        The driver goes offline only when offline_on_disconnect is set;
        otherwise the freshness window retires silent drivers.

        Returns:
            True if the driver was taken offline
        """
        if not self.offline_on_disconnect:
            return False
        return self.logout(driver_id)

    def attach_session(self, driver_id: str, on_removed: Callable[[], None]) -> bool:
        """
        Track an open driver session so that removing the driver closes it.

        Returns:
            False if the driver is not registered
        """
        with self._lock:
            if self.registry.get(driver_id) is None:
                return False
            self._sessions.setdefault(driver_id, []).append(on_removed)
            return True

    def detach_session(self, driver_id: str, on_removed: Callable[[], None]) -> None:
        with self._lock:
            callbacks = self._sessions.get(driver_id)
            if callbacks and on_removed in callbacks:
                callbacks.remove(on_removed)
                if not callbacks:
                    del self._sessions[driver_id]

    def disconnect(self, subscriber) -> bool:
        """Drop a subscriber whose transport went away."""
        removed = self.broadcaster.unsubscribe(subscriber)
        driver_id = getattr(subscriber, "driver_id", None)
        if driver_id:
            self.driver_disconnected(driver_id)
        return removed
