"""
Pre-Deploy and Smoke Test Script.

Runs the application in-process and walks the main tracking flow:
1. Health Check
2. Driver Registration -> Login
3. Location Submit -> Live Map -> Bus History
4. Cleanup (driver removal)
"""

import sys
import uuid

from fastapi.testclient import TestClient
from bus_tracker.app.main import app

API_PREFIX = "/v1"


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"✅ {msg}")


def main():
    print("🚀 Starting Deployment Validation...")

    with TestClient(app) as client:
        # 1. Health Check
        print_step("PRE-DEPLOY", "Checking /health...")
        response = client.get("/health")
        if response.status_code != 200:
            fail(f"Health check failed: {response.status_code} {response.text}")
        success(f"Health: {response.json()}")

        # 2. Register + Login a throwaway driver
        suffix = uuid.uuid4().hex[:8]
        driver = {
            "name": "Smoke Test Driver",
            "phone": f"+94000{suffix}",
            "license_number": f"SMOKE{suffix}",
            "vehicle_id": f"bus_smoke_{suffix}",
            "route_id": "route_smoke",
            "device_id": f"device_smoke_{suffix}",
        }
        print_step("SMOKE", "Registering driver...")
        response = client.post(f"{API_PREFIX}/driver/register", json=driver)
        if response.status_code != 201:
            fail(f"Registration failed: {response.status_code} {response.text}")
        driver_id = response.json()["driver_id"]

        response = client.post(
            f"{API_PREFIX}/driver/login",
            json={"phone": driver["phone"], "device_id": driver["device_id"]},
        )
        if response.status_code != 200:
            fail(f"Login failed: {response.status_code} {response.text}")
        success(f"Driver {driver_id} online")

        # 3. Location -> Live map
        print_step("SMOKE", "Submitting location...")
        response = client.post(f"{API_PREFIX}/driver/location", json={
            "driver_id": driver_id,
            "latitude": 6.9271,
            "longitude": 79.8612,
            "speed": 30,
            "accuracy": 5,
        })
        if response.status_code != 200:
            fail(f"Location update failed: {response.status_code} {response.text}")

        live = client.get(f"{API_PREFIX}/buses/live").json()
        if driver["vehicle_id"] not in [b["vehicle_id"] for b in live["buses"]]:
            fail("Smoke bus missing from live map")
        success(f"Live map shows {live['count']} bus(es)")

        history = client.get(f"{API_PREFIX}/bus/{driver['vehicle_id']}/history").json()
        if history.get("count") != 1:
            fail(f"Unexpected history: {history}")
        success("History recorded")

        # 4. Cleanup
        response = client.delete(f"{API_PREFIX}/admin/driver/{driver_id}")
        if response.status_code != 200:
            fail(f"Cleanup failed: {response.status_code} {response.text}")

    success("Deployment Validation Passed!")


if __name__ == "__main__":
    main()
