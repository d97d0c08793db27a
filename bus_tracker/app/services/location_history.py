"""
Per-driver location history.

Fixed-capacity FIFO trail of accepted samples. Not thread-safe on its own;
the tracker calls it while holding its lock.
"""

from collections import deque
from typing import Deque, Dict, List

from bus_tracker.app.models.location import LocationSample


class LocationHistory:

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self._logs: Dict[str, Deque[LocationSample]] = {}

    def append(self, driver_id: str, sample: LocationSample) -> None:
        """Push to the tail; the oldest entry falls off once capacity is exceeded."""
        log = self._logs.get(driver_id)
        if log is None:
            log = self._logs[driver_id] = deque(maxlen=self.capacity)
        log.append(sample)

    def get(self, driver_id: str, limit: int = 50) -> List[LocationSample]:
        """
        Most recent entries for a driver.

        Args:
            driver_id: Driver whose trail to read
            limit: Maximum number of entries

        Returns:
            Up to `limit` samples, oldest first
        """
        log = self._logs.get(driver_id)
        if not log or limit <= 0:
            return []
        entries = list(log)
        return entries[-limit:]

    def purge(self, driver_id: str) -> bool:
        return self._logs.pop(driver_id, None) is not None
