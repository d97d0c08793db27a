"""
Update broadcaster tests.
"""

import asyncio
import logging

import pytest

from bus_tracker.app.services.broadcaster import Broadcaster, QueueSubscriber, SubscriberClosedError


def test_notify_reaches_every_subscriber(make_sample, recording_subscriber):
    broadcaster = Broadcaster()
    first, second = recording_subscriber(), recording_subscriber()
    broadcaster.subscribe(first)
    broadcaster.subscribe(second)

    sample = make_sample()
    delivered = broadcaster.notify(sample)

    assert delivered == 2
    assert first.samples == [sample]
    assert second.samples == [sample]


def test_notify_without_subscribers(make_sample):
    assert Broadcaster().notify(make_sample()) == 0


def test_subscribe_twice_delivers_once(make_sample, recording_subscriber):
    broadcaster = Broadcaster()
    subscriber = recording_subscriber()
    broadcaster.subscribe(subscriber)
    broadcaster.subscribe(subscriber)

    broadcaster.notify(make_sample())

    assert len(subscriber.samples) == 1
    assert broadcaster.subscriber_count == 1


def test_failing_subscriber_does_not_block_others(make_sample, recording_subscriber, caplog, mocker):
    broadcaster = Broadcaster()
    healthy = recording_subscriber()
    failing = mocker.Mock(closed=False)
    failing.deliver.side_effect = ValueError("socket gone")
    broadcaster.subscribe(failing)
    broadcaster.subscribe(healthy)

    with caplog.at_level(logging.WARNING, logger="bus_tracker"):
        delivered = broadcaster.notify(make_sample())

    assert delivered == 1
    assert len(healthy.samples) == 1
    assert "delivery failed" in caplog.text
    # Open subscribers that fail once stay subscribed
    assert broadcaster.subscriber_count == 2


def test_subscriber_raising_runtime_error_is_dropped(make_sample, mocker):
    broadcaster = Broadcaster()
    gone = mocker.Mock(closed=False)
    gone.deliver.side_effect = RuntimeError("event loop is closed")
    broadcaster.subscribe(gone)
    sample = make_sample()

    assert broadcaster.notify(sample) == 0

    gone.deliver.assert_called_once_with(sample)
    assert broadcaster.subscriber_count == 0


def test_unsubscribe(recording_subscriber):
    broadcaster = Broadcaster()
    subscriber = recording_subscriber()
    broadcaster.subscribe(subscriber)

    assert broadcaster.unsubscribe(subscriber) is True
    assert broadcaster.unsubscribe(subscriber) is False


@pytest.mark.asyncio
async def test_closed_queue_subscriber_is_dropped(make_sample):
    broadcaster = Broadcaster()
    subscriber = QueueSubscriber("passenger")
    broadcaster.subscribe(subscriber)
    subscriber.close()

    assert broadcaster.notify(make_sample()) == 0
    assert broadcaster.subscriber_count == 0


@pytest.mark.asyncio
async def test_queue_subscriber_rejects_after_close(make_sample):
    subscriber = QueueSubscriber("passenger")
    subscriber.close()

    with pytest.raises(SubscriberClosedError):
        subscriber.deliver(make_sample())


@pytest.mark.asyncio
async def test_full_queue_drops_oldest(make_sample):
    subscriber = QueueSubscriber("slow-passenger", maxsize=2)
    samples = [make_sample(speed=float(i)) for i in range(3)]

    for sample in samples:
        subscriber.deliver(sample)
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert subscriber.dropped == 1
    assert [subscriber.queue.get_nowait(), subscriber.queue.get_nowait()] == samples[1:]


@pytest.mark.asyncio
async def test_pump_forwards_in_order(make_sample):
    subscriber = QueueSubscriber("passenger")
    sent = []

    async def send(sample):
        sent.append(sample)

    pump = asyncio.create_task(subscriber.pump(send))
    samples = [make_sample(speed=float(i)) for i in range(3)]
    for sample in samples:
        subscriber.deliver(sample)

    for _ in range(10):
        await asyncio.sleep(0)
    pump.cancel()
    await asyncio.gather(pump, return_exceptions=True)

    assert sent == samples


@pytest.mark.asyncio
async def test_tracker_disconnect_keeps_driver_online_by_default(tracker, register_d1):
    register_d1()
    tracker.authenticate("+940000001", "dev1")
    subscriber = QueueSubscriber("driver-session", driver_id="D1")
    tracker.broadcaster.subscribe(subscriber)

    assert tracker.disconnect(subscriber) is True

    assert tracker.broadcaster.subscriber_count == 0
    assert tracker.get_driver("D1").is_online is True


@pytest.mark.asyncio
async def test_tracker_disconnect_can_take_driver_offline(tracker, register_d1):
    tracker.offline_on_disconnect = True
    register_d1()
    tracker.authenticate("+940000001", "dev1")
    subscriber = QueueSubscriber("driver-session", driver_id="D1")
    tracker.broadcaster.subscribe(subscriber)

    tracker.disconnect(subscriber)

    assert tracker.get_driver("D1").is_online is False
