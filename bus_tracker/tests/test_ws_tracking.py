"""
WebSocket stream tests.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from bus_tracker.app.main import app

FIX = {"latitude": 6.9271, "longitude": 79.8612, "heading": 90, "speed": 30, "accuracy": 5}


@pytest.fixture
def ws_client(override_tracker):
    return TestClient(app)


@pytest.fixture
def online_driver(tracker, register_d1):
    register_d1()
    tracker.authenticate("+940000001", "dev1")
    return "D1"


def test_passenger_receives_snapshot_and_updates(ws_client, tracker, online_driver, make_sample):
    tracker.update(online_driver, make_sample(speed=10))

    with ws_client.websocket_connect("/v1/ws/buses") as websocket:
        snapshot = websocket.receive_json()
        assert snapshot["type"] == "snapshot"
        assert [b["vehicle_id"] for b in snapshot["buses"]] == ["bus_1"]

        response = ws_client.post("/v1/driver/location", json={"driver_id": online_driver, **FIX})
        assert response.status_code == 200

        message = websocket.receive_json()
        assert message["type"] == "location_update"
        assert message["vehicle_id"] == "bus_1"
        assert message["speed"] == 30

    assert tracker.broadcaster.subscriber_count == 0


def test_driver_socket_acks_fixes(ws_client, tracker, online_driver, clock):
    with ws_client.websocket_connect(f"/v1/ws/driver/{online_driver}") as websocket:
        websocket.send_json(FIX)
        ack = websocket.receive_json()

    assert ack == {"type": "ack", "timestamp": clock.now}
    assert tracker.get_current(online_driver).speed == 30
    # Closing the socket alone does not take the driver offline
    assert tracker.get_driver(online_driver).is_online is True


def test_driver_socket_reports_bad_fixes(ws_client, tracker, online_driver):
    with ws_client.websocket_connect(f"/v1/ws/driver/{online_driver}") as websocket:
        websocket.send_json({**FIX, "latitude": 95})
        invalid = websocket.receive_json()

        websocket.send_text("not json")
        malformed = websocket.receive_json()

        websocket.send_json(FIX)
        ack = websocket.receive_json()

    assert invalid["error_code"] == "ERR_LOCATION_INVALID"
    assert malformed["error_code"] == "ERR_VALIDATION"
    assert ack["type"] == "ack"
    assert len(tracker.get_history(online_driver)) == 1


def test_driver_socket_requires_login(ws_client, register_d1):
    register_d1()

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with ws_client.websocket_connect("/v1/ws/driver/D1") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 4001


def test_driver_socket_close_can_take_driver_offline(ws_client, tracker, online_driver):
    tracker.offline_on_disconnect = True

    with ws_client.websocket_connect(f"/v1/ws/driver/{online_driver}") as websocket:
        websocket.send_json(FIX)
        websocket.receive_json()

    assert tracker.get_driver(online_driver).is_online is False
    assert tracker.get_active_set() == []


def test_removing_driver_closes_open_driver_socket(ws_client, tracker, online_driver):
    with ws_client.websocket_connect(f"/v1/ws/driver/{online_driver}") as websocket:
        websocket.send_json(FIX)
        websocket.receive_json()

        tracker.remove(online_driver)

        with pytest.raises(WebSocketDisconnect) as exc_info:
            websocket.receive_json()

    assert exc_info.value.code == 4004
    assert tracker.get_driver(online_driver) is None
