"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from bus_tracker.app.main import app
from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.models.location import LocationSample
from bus_tracker.app.services.broadcaster import Broadcaster
from bus_tracker.app.services.location_tracker import LocationTracker


class FakeClock:
    """Controllable clock; starts at a fixed epoch second."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.published = []
        self.fail = False
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def publish(self, channel, message):
        if self.fail:
            raise ConnectionError("Redis unavailable")
        self.published.append((channel, message))
        return 1

    async def aclose(self):
        self._closed = True


class RecordingSubscriber:
    """Synchronous subscriber capturing every delivered sample."""

    def __init__(self, driver_id=None):
        self.samples = []
        self.driver_id = driver_id
        self.closed = False

    def deliver(self, sample):
        self.samples.append(sample)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return LocationTracker(broadcaster=Broadcaster(), clock=clock)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def register_d1(tracker):
    """Register driver D1 on bus_1 / r1."""
    def _register(**overrides):
        fields = dict(
            driver_id="D1",
            name="Kamal Perera",
            phone="+940000001",
            license_number="DL001234",
            vehicle_id="bus_1",
            route_id="r1",
            device_id="dev1",
        )
        fields.update(overrides)
        return tracker.register(**fields)
    return _register


@pytest.fixture
def recording_subscriber():
    return RecordingSubscriber


@pytest.fixture
def make_sample():
    """Build an unvalidated sample as a driver client would submit it."""
    def _make(latitude=6.9271, longitude=79.8612, **fields):
        fields.setdefault("driver_id", "D1")
        fields.setdefault("vehicle_id", "bus_1")
        fields.setdefault("route_id", "r1")
        fields.setdefault("speed", 30.0)
        fields.setdefault("accuracy", 5.0)
        return LocationSample(latitude=latitude, longitude=longitude, **fields)
    return _make


@pytest.fixture
def override_tracker(tracker):
    """Route every request to the isolated tracker fixture."""
    app.dependency_overrides[get_tracker] = lambda: tracker
    yield tracker
    app.dependency_overrides.pop(get_tracker, None)


@pytest.fixture
async def client(override_tracker):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
