"""
Demo driver seeding.

Registers a small fixed roster of Colombo route drivers so a fresh
development server has someone to log in as. Enabled with
SEED_DEMO_DRIVERS=true.
"""

import logging

from bus_tracker.app.services.location_tracker import LocationTracker

logger = logging.getLogger("bus_tracker")

DEMO_DRIVERS = [
    {
        "driver_id": "driver_001",
        "name": "Kamal Perera",
        "phone": "+94771234567",
        "license_number": "DL001234",
        "vehicle_id": "bus_138_01",
        "route_id": "route_138",
        "device_id": "device_android_001",
    },
    {
        "driver_id": "driver_002",
        "name": "Sunil Silva",
        "phone": "+94771234568",
        "license_number": "DL001235",
        "vehicle_id": "bus_177_01",
        "route_id": "route_177",
        "device_id": "device_android_002",
    },
    {
        "driver_id": "driver_003",
        "name": "Nimal Fernando",
        "phone": "+94771234569",
        "license_number": "DL001236",
        "vehicle_id": "bus_245_01",
        "route_id": "route_245",
        "device_id": "device_android_003",
    },
]


def seed_drivers(tracker: LocationTracker) -> int:
    """
    Register the demo roster.

    Drivers already present are skipped, so seeding twice is harmless.

    Returns:
        Number of drivers created
    """
    created = 0
    for driver in DEMO_DRIVERS:
        if tracker.get_driver(driver["driver_id"]) is not None:
            logger.info("Demo driver %s already exists, skipping", driver["driver_id"])
            continue
        tracker.register(**driver)
        created += 1

    logger.info("Seeded %d demo drivers", created)
    return created
