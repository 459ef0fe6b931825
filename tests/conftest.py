import threading
import time

import pytest

from sysmetrics.services.metrics.provider import Gauge, MetricSet


class RecordingProvider(MetricSet):
    """Test provider that records shutdown calls into a shared log."""

    def __init__(self, name, shutdown_log, metrics=None, error=None, delay=0.0):
        self.name = name
        self.shutdown_log = shutdown_log
        self.metrics = metrics if metrics is not None else {}
        self.error = error
        self.delay = delay
        self.shutdown_count = 0
        self._lock = threading.Lock()

    def get_metrics(self):
        return self.metrics

    def shutdown(self):
        with self._lock:
            self.shutdown_count += 1
        self.shutdown_log.append(self.name)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error


@pytest.fixture
def shutdown_log():
    return []


@pytest.fixture
def make_provider(shutdown_log):
    """Factory for RecordingProvider instances sharing one shutdown log."""
    def _make(name, **kwargs):
        return RecordingProvider(name, shutdown_log, **kwargs)
    return _make


@pytest.fixture
def gauge():
    """Factory for gauges with a constant value."""
    def _make(value):
        return Gauge(lambda: value)
    return _make
