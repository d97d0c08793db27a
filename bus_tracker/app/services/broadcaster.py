"""
Location update broadcaster.

Fans every accepted sample out to the current subscribers (passenger
WebSocket sessions, the Redis relay). Broadcast is global: every subscriber
sees every bus.

notify() never waits on the network. Subscribers buffer samples in a
bounded queue and a separate pump task performs the actual send.
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, List, Optional

from bus_tracker.app.core.observability import report_integrity_warning
from bus_tracker.app.models.location import LocationSample

logger = logging.getLogger("bus_tracker")


class SubscriberClosedError(Exception):
    pass


class QueueSubscriber:
    """
    Subscriber backed by a bounded asyncio queue.

    deliver() may be called from any thread. When the queue is full the
    oldest pending sample is discarded in favour of the new one.
    """

    def __init__(
        self,
        name: str,
        maxsize: int = 100,
        driver_id: Optional[str] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.name = name
        self.driver_id = driver_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0
        self._loop = loop or asyncio.get_running_loop()

    def deliver(self, sample: LocationSample) -> None:
        if self.closed:
            raise SubscriberClosedError(f"Subscriber {self.name} is closed")
        self._loop.call_soon_threadsafe(self._enqueue, sample)

    def _enqueue(self, sample: LocationSample) -> None:
        if self.closed:
            return
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(sample)

    async def pump(self, send: Callable[[LocationSample], Awaitable[None]]) -> None:
        """Forward queued samples to send() until cancelled or closed."""
        while not self.closed:
            sample = await self.queue.get()
            await send(sample)

    def close(self) -> None:
        self.closed = True

    def __repr__(self):
        return f"<QueueSubscriber(name={self.name}, driver_id={self.driver_id})>"


class Broadcaster:

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List = []

    def subscribe(self, subscriber) -> None:
        with self._lock:
            if subscriber not in self._subscribers:
                self._subscribers.append(subscriber)
        logger.debug("Subscriber added: %r", subscriber)

    def unsubscribe(self, subscriber) -> bool:
        with self._lock:
            if subscriber not in self._subscribers:
                return False
            self._subscribers.remove(subscriber)
        logger.debug("Subscriber removed: %r", subscriber)
        return True

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def notify(self, sample: LocationSample) -> int:
        """
        Hand a sample to every subscriber.

        A failing subscriber is reported and skipped; one that is closed is
        also dropped from the set.

        Returns:
            Number of subscribers that accepted the sample
        """
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for subscriber in subscribers:
            try:
                subscriber.deliver(sample)
                delivered += 1
            except Exception as e:
                report_integrity_warning(
                    "Location broadcast delivery failed",
                    subscriber=repr(subscriber),
                    driver_id=sample.driver_id,
                    error=str(e),
                )
                if getattr(subscriber, "closed", False) or isinstance(e, RuntimeError):
                    self.unsubscribe(subscriber)
        return delivered
