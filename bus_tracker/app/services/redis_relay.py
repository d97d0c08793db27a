"""
Redis location relay.

Broadcaster subscriber that republishes accepted samples on a Redis Pub/Sub
channel so other processes (push gateways, dashboards) can follow the fleet.
Publishing runs in its own pump task behind a circuit breaker; an
unavailable Redis only costs dropped relay messages.
"""

import asyncio
import json
import logging
from typing import Optional

from bus_tracker.app.core.reliability import CircuitBreaker, CircuitOpenError
from bus_tracker.app.models.location import LocationSample
from bus_tracker.app.services.broadcaster import QueueSubscriber

logger = logging.getLogger("bus_tracker")


def sample_message(sample: LocationSample) -> dict:
    """Wire format shared by the Redis relay and the passenger WebSocket."""
    return {
        "type": "location_update",
        "driver_id": sample.driver_id,
        "vehicle_id": sample.vehicle_id,
        "route_id": sample.route_id,
        "latitude": sample.latitude,
        "longitude": sample.longitude,
        "heading": sample.heading,
        "speed": sample.speed,
        "accuracy": sample.accuracy,
        "status": sample.status.value,
        "timestamp": sample.timestamp,
    }


class RedisLocationRelay:

    def __init__(
        self,
        redis_client,
        channel: str,
        breaker: Optional[CircuitBreaker] = None,
        maxsize: int = 100,
    ):
        self.redis = redis_client
        self.channel = channel
        self.breaker = breaker or CircuitBreaker(failure_threshold=3, reset_timeout=30)
        self.subscriber = QueueSubscriber(name=f"redis:{channel}", maxsize=maxsize)
        self.published = 0
        self.failed = 0
        self._task: Optional[asyncio.Task] = None

    async def publish(self, sample: LocationSample) -> None:
        payload = json.dumps(sample_message(sample))
        try:
            await self.breaker.call(self.redis.publish, self.channel, payload)
            self.published += 1
        except CircuitOpenError:
            self.failed += 1
        except Exception as e:
            self.failed += 1
            logger.warning("Redis relay publish failed: %s", e, extra={"channel": self.channel})

    def start(self, broadcaster) -> None:
        broadcaster.subscribe(self.subscriber)
        self._task = asyncio.create_task(self.subscriber.pump(self.publish))

    async def stop(self, broadcaster) -> None:
        broadcaster.unsubscribe(self.subscriber)
        self.subscriber.close()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
