"""
Tests for PeriodicSampler background thread.
"""
import threading

from sysmetrics.services.metrics.sampler import PeriodicSampler


def test_sampler_publishes_readings():
    """Test that fetched values are handed to publish"""
    published = []
    ready = threading.Event()

    def publish(value):
        published.append(value)
        ready.set()

    sampler = PeriodicSampler("test-sampler", 0.01, lambda: 42, publish)
    sampler.start()
    try:
        assert ready.wait(timeout=2.0)
    finally:
        sampler.stop()

    assert published[0] == 42
    assert sampler.is_running is False


def test_sampler_skips_none_and_survives_errors():
    """Test that None readings are skipped and fetch errors don't kill the thread"""
    readings = iter([None, RuntimeError("probe failed"), 7])
    published = []
    ready = threading.Event()

    def fetch():
        value = next(readings, 7)
        if isinstance(value, Exception):
            raise value
        return value

    def publish(value):
        published.append(value)
        ready.set()

    sampler = PeriodicSampler("flaky-sampler", 0.01, fetch, publish)
    sampler.start()
    try:
        assert ready.wait(timeout=2.0)
    finally:
        sampler.stop()

    assert published[0] == 7


def test_sampler_stop_is_prompt():
    """Test that stop wakes the thread without waiting a full interval"""
    sampler = PeriodicSampler("slow-sampler", 60.0, lambda: 1, lambda value: None)
    sampler.start()

    sampler.stop(timeout=1.0)

    assert sampler.is_running is False


def test_stop_without_start():
    """Test that stopping a sampler that never started is harmless"""
    sampler = PeriodicSampler("idle-sampler", 1.0, lambda: 1, lambda value: None)

    sampler.stop()

    assert sampler.is_running is False
