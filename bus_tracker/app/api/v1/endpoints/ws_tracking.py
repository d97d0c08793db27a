"""
Real-time WebSocket endpoints.

/ws/buses streams every accepted location to passengers.
/ws/driver/{driver_id} lets a logged-in driver push fixes over one socket.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from pydantic import ValidationError

from bus_tracker.app.core.config import settings
from bus_tracker.app.core.dependencies import get_tracker
from bus_tracker.app.core.exceptions import AppException
from bus_tracker.app.schemas.location import LocationSubmit
from bus_tracker.app.services.broadcaster import QueueSubscriber
from bus_tracker.app.services.location_tracker import LocationTracker
from bus_tracker.app.services.redis_relay import sample_message

logger = logging.getLogger("bus_tracker")

router = APIRouter(tags=["Real-time Tracking"])


@router.websocket("/ws/buses")
async def passenger_stream(
    websocket: WebSocket,
    tracker: LocationTracker = Depends(get_tracker),
):
    """
    Passenger live feed.

    Sends a snapshot of the active set on connect, then one
    location_update message per accepted fix. Incoming text is treated as
    keepalive and ignored.
    """
    await websocket.accept()
    subscriber = QueueSubscriber(
        name=f"passenger:{id(websocket):x}",
        maxsize=settings.subscriber_queue_size,
    )
    tracker.broadcaster.subscribe(subscriber)

    async def send(sample):
        await websocket.send_json(sample_message(sample))

    pump = None
    try:
        await websocket.send_json({
            "type": "snapshot",
            "buses": [sample_message(s) for s in tracker.get_active_set()],
        })
        pump = asyncio.create_task(subscriber.pump(send))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        subscriber.close()
        tracker.disconnect(subscriber)
        if pump is not None:
            pump.cancel()
            await asyncio.gather(pump, return_exceptions=True)


@router.websocket("/ws/driver/{driver_id}")
async def driver_stream(
    websocket: WebSocket,
    driver_id: str,
    tracker: LocationTracker = Depends(get_tracker),
):
    """
    Driver location socket.

    Each JSON message is a location fix; the server answers with an ack or
    an error message and keeps the socket open. Removing the driver closes
    the socket with 4004.
    """
    driver = tracker.get_driver(driver_id)
    if driver is None or not driver.is_online:
        await websocket.close(code=4001, reason="Driver not logged in")
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()

    async def close_removed():
        if websocket.application_state == WebSocketState.CONNECTED:
            await websocket.close(code=4004, reason="Driver removed")

    def on_removed():
        # may run on whichever thread removed the driver
        asyncio.run_coroutine_threadsafe(close_removed(), loop)

    if not tracker.attach_session(driver_id, on_removed):
        await close_removed()
        return

    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = LocationSubmit.model_validate_json(message)
                accepted = tracker.update(driver_id, payload.to_sample(driver_id))
            except ValidationError as e:
                await websocket.send_json({
                    "type": "error",
                    "error_code": "ERR_VALIDATION",
                    "message": "Validation error",
                    "details": {"errors": e.errors(include_url=False, include_context=False)},
                })
                continue
            except AppException as e:
                await websocket.send_json({
                    "type": "error",
                    "error_code": e.error_code,
                    "message": e.message,
                    "details": e.details,
                })
                continue

            if accepted is None:
                await close_removed()
                return
            await websocket.send_json({"type": "ack", "timestamp": accepted.timestamp})
    except WebSocketDisconnect:
        logger.info("Driver socket closed", extra={"driver_id": driver_id})
        tracker.driver_disconnected(driver_id)
    finally:
        tracker.detach_session(driver_id, on_removed)
