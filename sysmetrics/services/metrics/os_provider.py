"""OperatingSystemMetricSet - psutil-backed operating system metrics.

Every gauge reads psutil live, except I/O wait and network interface
throughput, which need two spaced samples and are refreshed by background
samplers. Metrics that the platform cannot report are simply not registered,
and the matching status attribute stays None.
"""

import os
import sys
import threading
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import psutil

from sysmetrics.core.config import settings
from sysmetrics.core.logging_config import get_logger
from .provider import Gauge, Metric, MetricSet, join
from .sampler import PeriodicSampler

logger = get_logger(__name__)


@dataclass(frozen=True)
class NetworkInterfaceUsage:
    received_bytes_per_second: int
    transmitted_bytes_per_second: int


@dataclass(frozen=True)
class NetworkInterfaceStatus:
    """Throughput gauges for one network interface."""
    name: str
    received_bytes_per_second_gauge: Gauge
    transmitted_bytes_per_second_gauge: Gauge


def _percentage(part: float, total: float) -> float:
    if total <= 0:
        return 0.0
    return float(part) / total * 100


def fetch_io_wait_percentage() -> Optional[float]:
    """CPU time share spent waiting on I/O since the previous call (Linux only)."""
    if not sys.platform.startswith("linux"):
        return None

    try:
        times = psutil.cpu_times_percent(interval=None)
    except Exception as e:
        logger.debug(f"Error reading CPU times: {e}")
        return None

    return getattr(times, "iowait", None)


def read_network_counters() -> Optional[Dict[str, Tuple[int, int]]]:
    """Cumulative (bytes received, bytes sent) per interface, or None if unavailable."""
    try:
        counters = psutil.net_io_counters(pernic=True)
    except Exception as e:
        logger.debug(f"Error reading network interface counters: {e}")
        return None

    if not counters:
        return None
    return {name: (c.bytes_recv, c.bytes_sent) for name, c in counters.items()}


def compute_network_usage(
    previous: Mapping[str, Tuple[int, int]],
    current: Mapping[str, Tuple[int, int]],
    elapsed_s: float,
) -> Dict[str, NetworkInterfaceUsage]:
    """Per-interface byte rates between two counter readings.

    Interfaces missing from either reading are skipped; counter resets
    (wrap or interface restart) are reported as 0.
    """
    usage: Dict[str, NetworkInterfaceUsage] = {}
    if elapsed_s <= 0:
        return usage

    for name, (recv, sent) in current.items():
        if name not in previous:
            continue
        prev_recv, prev_sent = previous[name]
        usage[name] = NetworkInterfaceUsage(
            received_bytes_per_second=int(max(recv - prev_recv, 0) / elapsed_s),
            transmitted_bytes_per_second=int(max(sent - prev_sent, 0) / elapsed_s),
        )
    return usage


class OperatingSystemMetricSet(MetricSet):
    """Operating system metrics and status.

    Status attributes hold the gauges (or None where the platform does not
    report the value): available_logical_processors_gauge,
    system_load_average_gauge, system_load_average_per_logical_processor_gauge,
    process_cpu_busy_percentage_gauge, system_cpu_busy_percentage_gauge,
    committed_virtual_memory_size_in_bytes_gauge, the physical memory, swap
    space, file descriptor and disk space gauges, io_wait_percentage_gauge and
    network_interface_statuses.
    """

    def __init__(
        self,
        io_wait_interval: Optional[float] = None,
        nic_interval: Optional[float] = None,
        root_path: Optional[str] = None,
    ):
        self._process = psutil.Process()
        self._root_path = root_path or os.path.abspath(os.sep)

        self._shutdown = False
        self._shutdown_lock = threading.Lock()

        # Prime psutil's interval-less CPU readings so the first gauge read is meaningful
        self._process.cpu_percent(interval=None)
        psutil.cpu_percent(interval=None)

        # ----- Background samplers -----
        self._io_wait_percentage = fetch_io_wait_percentage()
        self._io_wait_sampler: Optional[PeriodicSampler] = None
        if self._io_wait_percentage is not None:
            self._io_wait_sampler = PeriodicSampler(
                "OperatingSystemMetricSet-IOWaitUpdater",
                io_wait_interval if io_wait_interval is not None else settings.IO_WAIT_INTERVAL,
                fetch_io_wait_percentage,
                self._set_io_wait_percentage,
            )

        self._nic_counters = read_network_counters()
        self._nic_counters_ts = time.monotonic()
        self._nic_usage: Dict[str, NetworkInterfaceUsage] = {}
        self._nic_sampler: Optional[PeriodicSampler] = None
        if self._nic_counters is not None:
            self._nic_sampler = PeriodicSampler(
                "OperatingSystemMetricSet-NICUsageUpdater",
                nic_interval if nic_interval is not None else settings.NIC_INTERVAL,
                self._fetch_network_usage,
                self._set_network_usage,
            )

        # ----- Gauges -----
        metrics: Dict[str, Metric] = {}

        self.available_logical_processors_gauge = Gauge(lambda: psutil.cpu_count(logical=True) or 1)
        metrics["availableLogicalProcessors"] = self.available_logical_processors_gauge

        self.system_load_average_gauge: Optional[Gauge] = None
        self.system_load_average_per_logical_processor_gauge: Optional[Gauge] = None
        if self._load_average() is not None:
            self.system_load_average_gauge = Gauge(self._load_average)
            metrics["systemLoadAverage"] = self.system_load_average_gauge

            self.system_load_average_per_logical_processor_gauge = Gauge(
                lambda: self._load_average() / (psutil.cpu_count(logical=True) or 1)
            )
            metrics["systemLoadAveragePerLogicalProcessor"] = self.system_load_average_per_logical_processor_gauge

        self.process_cpu_busy_percentage_gauge = Gauge(lambda: self._process.cpu_percent(interval=None))
        metrics["processCpuBusyPercentage"] = self.process_cpu_busy_percentage_gauge

        self.system_cpu_busy_percentage_gauge = Gauge(lambda: psutil.cpu_percent(interval=None))
        metrics["systemCpuBusyPercentage"] = self.system_cpu_busy_percentage_gauge

        self.committed_virtual_memory_size_in_bytes_gauge = Gauge(lambda: self._process.memory_info().vms)
        metrics["committedVirtualMemorySizeInBytes"] = self.committed_virtual_memory_size_in_bytes_gauge

        # Physical memory
        physical_memory_namespace = "physicalMemory"

        self.total_physical_memory_size_in_bytes_gauge = Gauge(lambda: psutil.virtual_memory().total)
        metrics[join(physical_memory_namespace, "totalInBytes")] = self.total_physical_memory_size_in_bytes_gauge

        self.free_physical_memory_size_in_bytes_gauge = Gauge(lambda: psutil.virtual_memory().available)
        metrics[join(physical_memory_namespace, "freeInBytes")] = self.free_physical_memory_size_in_bytes_gauge

        def used_physical_memory_percentage() -> float:
            memory = psutil.virtual_memory()
            return _percentage(memory.total - memory.available, memory.total)

        self.used_physical_memory_percentage_gauge = Gauge(used_physical_memory_percentage)
        metrics[join(physical_memory_namespace, "usedPercentage")] = self.used_physical_memory_percentage_gauge

        # Swap space
        swap_space_namespace = "swapSpace"

        self.total_swap_space_size_in_bytes_gauge = Gauge(lambda: psutil.swap_memory().total)
        metrics[join(swap_space_namespace, "totalInBytes")] = self.total_swap_space_size_in_bytes_gauge

        self.free_swap_space_size_in_bytes_gauge = Gauge(lambda: psutil.swap_memory().free)
        metrics[join(swap_space_namespace, "freeInBytes")] = self.free_swap_space_size_in_bytes_gauge

        def used_swap_space_percentage() -> float:
            swap = psutil.swap_memory()
            return _percentage(swap.total - swap.free, swap.total)

        self.used_swap_space_percentage_gauge = Gauge(used_swap_space_percentage)
        metrics[join(swap_space_namespace, "usedPercentage")] = self.used_swap_space_percentage_gauge

        # File descriptors (e.g., sockets)
        file_descriptors_namespace = "fileDescriptors"

        self.max_file_descriptors_gauge: Optional[Gauge] = None
        self.open_file_descriptors_gauge: Optional[Gauge] = None
        self.used_file_descriptors_percentage_gauge: Optional[Gauge] = None
        if hasattr(self._process, "num_fds") and self._max_file_descriptors() is not None:
            self.max_file_descriptors_gauge = Gauge(self._max_file_descriptors)
            metrics[join(file_descriptors_namespace, "max")] = self.max_file_descriptors_gauge

            self.open_file_descriptors_gauge = Gauge(self._process.num_fds)
            metrics[join(file_descriptors_namespace, "open")] = self.open_file_descriptors_gauge

            self.used_file_descriptors_percentage_gauge = Gauge(
                lambda: _percentage(self._process.num_fds(), self._max_file_descriptors() or 0)
            )
            metrics[join(file_descriptors_namespace, "usedPercentage")] = self.used_file_descriptors_percentage_gauge

        # Disk space
        disk_space_namespace = "diskSpace"

        self.total_disk_space_in_bytes_gauge: Optional[Gauge] = None
        self.free_disk_space_in_bytes_gauge: Optional[Gauge] = None
        self.used_disk_space_percentage_gauge: Optional[Gauge] = None
        if self._disk_total() > 0:
            self.total_disk_space_in_bytes_gauge = Gauge(self._disk_total)
            metrics[join(disk_space_namespace, "totalInBytes")] = self.total_disk_space_in_bytes_gauge

            self.free_disk_space_in_bytes_gauge = Gauge(lambda: psutil.disk_usage(self._root_path).free)
            metrics[join(disk_space_namespace, "freeInBytes")] = self.free_disk_space_in_bytes_gauge

            def used_disk_space_percentage() -> float:
                usage = psutil.disk_usage(self._root_path)
                return _percentage(usage.total - usage.free, usage.total)

            self.used_disk_space_percentage_gauge = Gauge(used_disk_space_percentage)
            metrics[join(disk_space_namespace, "usedPercentage")] = self.used_disk_space_percentage_gauge

        # CPU I/O wait
        self.io_wait_percentage_gauge: Optional[Gauge] = None
        if self._io_wait_sampler is not None:
            self.io_wait_percentage_gauge = Gauge(lambda: self._io_wait_percentage)
            metrics["ioWaitPercentage"] = self.io_wait_percentage_gauge

        # Network interfaces
        network_interface_statuses = []
        for name in (self._nic_counters or {}):
            namespace = join("networkInterfaces", name)

            received_gauge = Gauge(lambda name=name: self._nic_rate(name).received_bytes_per_second)
            metrics[join(namespace, "receivedBytesPerSecond")] = received_gauge

            transmitted_gauge = Gauge(lambda name=name: self._nic_rate(name).transmitted_bytes_per_second)
            metrics[join(namespace, "transmittedBytesPerSecond")] = transmitted_gauge

            network_interface_statuses.append(NetworkInterfaceStatus(name, received_gauge, transmitted_gauge))

        self.network_interface_statuses: Tuple[NetworkInterfaceStatus, ...] = tuple(network_interface_statuses)

        self._metrics: Mapping[str, Metric] = MappingProxyType(metrics)

        for sampler in (self._io_wait_sampler, self._nic_sampler):
            if sampler is not None:
                sampler.start()

    def get_metrics(self) -> Mapping[str, Metric]:
        return self._metrics

    def shutdown(self) -> None:
        """Stop the background samplers; safe to call more than once."""
        with self._shutdown_lock:
            if self._shutdown:
                return
            self._shutdown = True

        for sampler in (self._io_wait_sampler, self._nic_sampler):
            if sampler is not None:
                sampler.stop(timeout=1.0)

    # ----- readers -----

    @staticmethod
    def _load_average() -> Optional[float]:
        try:
            return psutil.getloadavg()[0]
        except (AttributeError, OSError):
            return None

    @staticmethod
    def _max_file_descriptors() -> Optional[int]:
        try:
            import resource
        except ImportError:
            return None

        soft_limit, _ = resource.getrlimit(resource.RLIMIT_NOFILE)
        if soft_limit == resource.RLIM_INFINITY:
            return None
        return soft_limit

    def _disk_total(self) -> int:
        try:
            return psutil.disk_usage(self._root_path).total
        except OSError:
            return 0

    def _nic_rate(self, name: str) -> NetworkInterfaceUsage:
        return self._nic_usage.get(name, NetworkInterfaceUsage(0, 0))

    # ----- sampler callbacks -----

    def _set_io_wait_percentage(self, value: float) -> None:
        self._io_wait_percentage = value

    def _fetch_network_usage(self) -> Optional[Dict[str, NetworkInterfaceUsage]]:
        current = read_network_counters()
        if current is None:
            return None

        now = time.monotonic()
        usage = compute_network_usage(self._nic_counters or {}, current, now - self._nic_counters_ts)
        self._nic_counters = current
        self._nic_counters_ts = now
        return usage

    def _set_network_usage(self, usage: Dict[str, NetworkInterfaceUsage]) -> None:
        # Swapped as a whole, never mutated in place
        self._nic_usage = usage
