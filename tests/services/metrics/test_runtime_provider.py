"""
Tests for RuntimeMetricSet and its garbage collection hook.
"""
import gc
import threading

import pytest

from sysmetrics.services.metrics.provider import flatten_metrics
from sysmetrics.services.metrics.runtime_provider import GcPauseSample, RuntimeMetricSet


@pytest.fixture
def runtime_metrics():
    metric_set = RuntimeMetricSet()
    yield metric_set
    metric_set.shutdown()


class TestRuntimeMetricSet:
    """Test suite for interpreter runtime metrics"""

    def test_nested_metric_names(self, runtime_metrics):
        """Test that sub-bundles flatten under their namespaces"""
        names = flatten_metrics(runtime_metrics)

        for name in (
            "threads.current",
            "threads.daemon",
            "threads.peak",
            "memory.residentInBytes",
            "memory.virtualInBytes",
            "gc.generation0.collections",
            "gc.generation0.lastPauseInMillis",
            "gc.fullCollections",
            "modules.loaded",
            "uptimeInMillis",
        ):
            assert name in names, name

    def test_thread_gauges_track_peak(self, runtime_metrics):
        """Test that peak threads never drops below the current count"""
        release = threading.Event()
        worker = threading.Thread(target=release.wait, daemon=True)
        worker.start()
        try:
            current = runtime_metrics.current_threads_gauge.value
            assert current >= 2
            assert runtime_metrics.daemon_threads_gauge.value >= 1
        finally:
            release.set()
            worker.join(timeout=1.0)

        assert runtime_metrics.peak_threads_gauge.value >= current

    def test_peak_never_lowered_by_concurrent_reads(self, runtime_metrics):
        """Test that concurrent gauge reads never leave peak below an observed count"""
        reader_count = 8
        barrier = threading.Barrier(reader_count)
        observed = []

        def read_current():
            barrier.wait()
            for _ in range(200):
                observed.append(runtime_metrics.current_threads_gauge.value)

        readers = [threading.Thread(target=read_current) for _ in range(reader_count)]
        for t in readers:
            t.start()
        for t in readers:
            t.join(timeout=5.0)

        assert runtime_metrics.peak_threads_gauge.value >= max(observed)

    def test_memory_and_uptime_positive(self, runtime_metrics):
        assert runtime_metrics.resident_memory_in_bytes_gauge.value > 0
        assert runtime_metrics.uptime_in_millis_gauge.value >= 0
        assert runtime_metrics.loaded_modules_gauge.value > 0

    def test_gc_pause_recorded(self, runtime_metrics):
        """Test that a forced full collection records a pause on the oldest generation"""
        before = runtime_metrics.full_gc_collections_gauge.value

        gc.collect()

        oldest = runtime_metrics.garbage_collector_statuses[-1]
        assert runtime_metrics.full_gc_collections_gauge.value > before
        assert len(runtime_metrics._gc_metric_set.pause_samples[-1].pauses_ms) >= 1
        assert oldest["last_pause_ms"] >= 0.0
        assert oldest["collections"] >= 1

    def test_shutdown_removes_gc_callback(self):
        """Test that shutdown unregisters the GC hook, idempotently"""
        metric_set = RuntimeMetricSet()
        hook = metric_set._gc_metric_set._on_gc
        assert hook in gc.callbacks

        metric_set.shutdown()
        metric_set.shutdown()

        assert hook not in gc.callbacks

    def test_status_readable_after_shutdown(self):
        """Test that status reads still work once the GC hook is gone"""
        metric_set = RuntimeMetricSet()
        metric_set.shutdown()

        assert metric_set.current_threads_gauge.value >= 1
        assert len(metric_set.garbage_collector_statuses) == len(gc.get_stats())


def test_gc_pause_sample_rolling_average():
    """Test that average_pause_ms covers only the last 60 pauses"""
    sample = GcPauseSample(generation=0)

    for i in range(70):
        sample.pauses_ms.append(float(i))

    assert len(sample.pauses_ms) == 60
    assert sample.average_pause_ms == pytest.approx(sum(range(10, 70)) / 60)


def test_gc_pause_sample_empty_average():
    assert GcPauseSample(generation=1).average_pause_ms == 0.0
