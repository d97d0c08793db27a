"""
Shared FastAPI dependencies.

The tracker is created in the application lifespan and read back from
application state, so tests can override get_tracker with an isolated
instance.
"""

from starlette.requests import HTTPConnection

from bus_tracker.app.services.location_tracker import LocationTracker


def get_tracker(connection: HTTPConnection) -> LocationTracker:
    """
    FastAPI dependency returning the process-wide LocationTracker.

    Works for both HTTP requests and WebSocket sessions.
    """
    return connection.app.state.tracker
