"""
Location history ring buffer tests.
"""

import pytest

from bus_tracker.app.services.location_history import LocationHistory


def _fill(history, make_sample, count, driver_id="D1"):
    samples = [make_sample(latitude=i * 0.1 % 90, timestamp=float(i)) for i in range(count)]
    for sample in samples:
        history.append(driver_id, sample)
    return samples


def test_never_exceeds_capacity(make_sample):
    history = LocationHistory(capacity=100)
    _fill(history, make_sample, 250)

    assert len(history.get("D1", limit=1000)) == 100


def test_overflow_evicts_exactly_the_oldest(make_sample):
    history = LocationHistory(capacity=100)
    samples = _fill(history, make_sample, 101)

    kept = history.get("D1", limit=100)

    assert kept[0] is samples[1]
    assert kept[-1] is samples[100]
    assert samples[0] not in kept


def test_get_returns_most_recent_oldest_first(make_sample):
    history = LocationHistory()
    samples = _fill(history, make_sample, 10)

    assert history.get("D1", limit=3) == samples[7:]


def test_default_limit_is_fifty(make_sample):
    history = LocationHistory()
    _fill(history, make_sample, 80)

    assert len(history.get("D1")) == 50


def test_limit_larger_than_stored(make_sample):
    history = LocationHistory()
    samples = _fill(history, make_sample, 4)

    assert history.get("D1", limit=50) == samples


def test_unknown_driver_and_non_positive_limit(make_sample):
    history = LocationHistory()
    _fill(history, make_sample, 4)

    assert history.get("nobody") == []
    assert history.get("D1", limit=0) == []


def test_logs_are_per_driver(make_sample):
    history = LocationHistory()
    _fill(history, make_sample, 3, driver_id="D1")
    _fill(history, make_sample, 5, driver_id="D2")

    assert len(history.get("D1", limit=1000)) == 3
    assert len(history.get("D2", limit=1000)) == 5


def test_purge(make_sample):
    history = LocationHistory()
    _fill(history, make_sample, 3)

    assert history.purge("D1") is True
    assert history.get("D1") == []
    assert history.purge("D1") is False


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        LocationHistory(capacity=0)
