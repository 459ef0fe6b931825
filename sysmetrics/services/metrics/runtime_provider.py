"""RuntimeMetricSet - Python interpreter runtime metrics.

The runtime subsystem is registered under the "jvm" name in the system
wiring. It is composed of smaller bundles (threads, memory, gc, modules) plus
an uptime gauge. Garbage collection pauses are timed through gc.callbacks;
shutdown removes that hook.
"""

import gc
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import psutil

from sysmetrics.core.logging_config import get_logger
from .provider import Gauge, Metric, MetricSet, join

logger = get_logger(__name__)


@dataclass
class GcPauseSample:
    """Pause timings for one GC generation over a rolling window."""
    generation: int
    pauses_ms: deque = field(default_factory=lambda: deque(maxlen=60))
    last_pause_ms: float = 0.0

    @property
    def average_pause_ms(self) -> float:
        """Rolling average pause over the last 60 collections."""
        if not self.pauses_ms:
            return 0.0
        return sum(self.pauses_ms) / len(self.pauses_ms)


class ThreadMetricSet(MetricSet):
    """Thread counts. Peak is the highest count observed by any read."""

    def __init__(self):
        self._peak = threading.active_count()
        self._peak_lock = threading.Lock()

        self.current_threads_gauge = Gauge(self._current)
        self.daemon_threads_gauge = Gauge(lambda: sum(1 for t in threading.enumerate() if t.daemon))
        self.peak_threads_gauge = Gauge(self._peak_value)

        self._metrics: Mapping[str, Metric] = MappingProxyType({
            "current": self.current_threads_gauge,
            "daemon": self.daemon_threads_gauge,
            "peak": self.peak_threads_gauge,
        })

    def _current(self) -> int:
        count = threading.active_count()
        with self._peak_lock:
            self._peak = max(self._peak, count)
        return count

    def _peak_value(self) -> int:
        self._current()
        return self._peak

    def get_metrics(self) -> Mapping[str, Metric]:
        return self._metrics


class ProcessMemoryMetricSet(MetricSet):
    """Resident and virtual memory of the current process."""

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process or psutil.Process()

        self.resident_memory_in_bytes_gauge = Gauge(lambda: self._process.memory_info().rss)
        self.virtual_memory_in_bytes_gauge = Gauge(lambda: self._process.memory_info().vms)

        self._metrics: Mapping[str, Metric] = MappingProxyType({
            "residentInBytes": self.resident_memory_in_bytes_gauge,
            "virtualInBytes": self.virtual_memory_in_bytes_gauge,
        })

    def get_metrics(self) -> Mapping[str, Metric]:
        return self._metrics


class GarbageCollectorMetricSet(MetricSet):
    """Per-generation collection counts and pause times."""

    def __init__(self):
        generations = len(gc.get_stats())
        self._pauses: Tuple[GcPauseSample, ...] = tuple(GcPauseSample(g) for g in range(generations))
        self._started_at: Dict[int, float] = {}

        self._shutdown = False
        self._shutdown_lock = threading.Lock()

        metrics: Dict[str, Metric] = {}
        for sample in self._pauses:
            g = sample.generation
            namespace = f"generation{g}"

            metrics[join(namespace, "collections")] = Gauge(lambda g=g: gc.get_stats()[g]["collections"])
            metrics[join(namespace, "collected")] = Gauge(lambda g=g: gc.get_stats()[g]["collected"])
            metrics[join(namespace, "uncollectable")] = Gauge(lambda g=g: gc.get_stats()[g]["uncollectable"])
            metrics[join(namespace, "lastPauseInMillis")] = Gauge(lambda s=sample: s.last_pause_ms)
            metrics[join(namespace, "averagePauseInMillis")] = Gauge(lambda s=sample: s.average_pause_ms)

        # The oldest generation is a full collection
        self.full_collections_gauge = Gauge(lambda: gc.get_stats()[-1]["collections"])
        metrics["fullCollections"] = self.full_collections_gauge

        self._metrics: Mapping[str, Metric] = MappingProxyType(metrics)

        gc.callbacks.append(self._on_gc)

    @property
    def pause_samples(self) -> Tuple[GcPauseSample, ...]:
        return self._pauses

    def _on_gc(self, phase: str, info: Dict) -> None:
        generation = info.get("generation", 0)
        if phase == "start":
            self._started_at[generation] = time.perf_counter()
            return

        started_at = self._started_at.pop(generation, None)
        if started_at is None or generation >= len(self._pauses):
            return

        pause_ms = (time.perf_counter() - started_at) * 1000.0
        sample = self._pauses[generation]
        sample.last_pause_ms = pause_ms
        sample.pauses_ms.append(pause_ms)

    def get_metrics(self) -> Mapping[str, Metric]:
        return self._metrics

    def shutdown(self) -> None:
        """Remove the GC hook; safe to call more than once."""
        with self._shutdown_lock:
            if self._shutdown:
                return
            self._shutdown = True

        try:
            gc.callbacks.remove(self._on_gc)
        except ValueError:
            logger.debug("GC callback was already removed")


class RuntimeMetricSet(MetricSet):
    """Python runtime metrics and status.

    Status attributes: thread gauges, memory gauges, GC statistics,
    loaded module count and uptime.
    """

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process or psutil.Process()

        self._shutdown = False
        self._shutdown_lock = threading.Lock()

        self._thread_metric_set = ThreadMetricSet()
        self._memory_metric_set = ProcessMemoryMetricSet(self._process)
        self._gc_metric_set = GarbageCollectorMetricSet()

        self.loaded_modules_gauge = Gauge(lambda: len(sys.modules))

        created_at = self._process.create_time()
        self.uptime_in_millis_gauge = Gauge(lambda: int((time.time() - created_at) * 1000))

        self._metrics: Mapping[str, Metric] = MappingProxyType({
            "threads": self._thread_metric_set,
            "memory": self._memory_metric_set,
            "gc": self._gc_metric_set,
            "modules": _SingleGaugeSet("loaded", self.loaded_modules_gauge),
            "uptimeInMillis": self.uptime_in_millis_gauge,
        })

    def get_metrics(self) -> Mapping[str, Metric]:
        return self._metrics

    @property
    def current_threads_gauge(self) -> Gauge:
        return self._thread_metric_set.current_threads_gauge

    @property
    def daemon_threads_gauge(self) -> Gauge:
        return self._thread_metric_set.daemon_threads_gauge

    @property
    def peak_threads_gauge(self) -> Gauge:
        return self._thread_metric_set.peak_threads_gauge

    @property
    def resident_memory_in_bytes_gauge(self) -> Gauge:
        return self._memory_metric_set.resident_memory_in_bytes_gauge

    @property
    def virtual_memory_in_bytes_gauge(self) -> Gauge:
        return self._memory_metric_set.virtual_memory_in_bytes_gauge

    @property
    def full_gc_collections_gauge(self) -> Gauge:
        return self._gc_metric_set.full_collections_gauge

    @property
    def garbage_collector_statuses(self) -> List[Dict]:
        """Current per-generation GC statistics including pause timings."""
        stats = gc.get_stats()
        return [
            {
                "generation": sample.generation,
                "collections": stats[sample.generation]["collections"],
                "collected": stats[sample.generation]["collected"],
                "uncollectable": stats[sample.generation]["uncollectable"],
                "last_pause_ms": sample.last_pause_ms,
                "average_pause_ms": sample.average_pause_ms,
            }
            for sample in self._gc_metric_set.pause_samples
        ]

    def shutdown(self) -> None:
        with self._shutdown_lock:
            if self._shutdown:
                return
            self._shutdown = True

        self._gc_metric_set.shutdown()


class _SingleGaugeSet(MetricSet):
    def __init__(self, name: str, gauge: Gauge):
        self._metrics: Mapping[str, Metric] = MappingProxyType({name: gauge})

    def get_metrics(self) -> Mapping[str, Metric]:
        return self._metrics
