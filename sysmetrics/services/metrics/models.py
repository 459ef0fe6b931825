"""Pydantic V2 models for system status API responses.

These models snapshot the live status view of a SystemMetricSet at one
point in time. The aggregator itself never copies status; only the HTTP
surface does, through these builders.
"""

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from sysmetrics.core.logging_config import get_logger
from .provider import Gauge, flatten_metrics

logger = get_logger(__name__)


def read_gauge(gauge: Optional[Gauge]) -> Any:
    """Current value of a gauge, or None if it is absent or its read fails."""
    if gauge is None:
        return None
    try:
        return gauge.value
    except Exception as e:
        logger.debug(f"Error reading gauge {gauge!r}: {e}")
        return None


class NetworkInterfaceStatusModel(BaseModel):
    """Throughput of one network interface"""
    model_config = ConfigDict(from_attributes=True)

    name: str
    received_bytes_per_second: Optional[int] = None
    transmitted_bytes_per_second: Optional[int] = None


class OperatingSystemStatusModel(BaseModel):
    """Operating system status snapshot"""
    model_config = ConfigDict(from_attributes=True)

    available_logical_processors: Optional[int] = None
    system_load_average: Optional[float] = None
    system_load_average_per_logical_processor: Optional[float] = None
    process_cpu_busy_percentage: Optional[float] = None
    system_cpu_busy_percentage: Optional[float] = None
    committed_virtual_memory_size_in_bytes: Optional[int] = None
    total_physical_memory_size_in_bytes: Optional[int] = None
    free_physical_memory_size_in_bytes: Optional[int] = None
    used_physical_memory_percentage: Optional[float] = None
    total_swap_space_size_in_bytes: Optional[int] = None
    free_swap_space_size_in_bytes: Optional[int] = None
    used_swap_space_percentage: Optional[float] = None
    max_file_descriptors: Optional[int] = None
    open_file_descriptors: Optional[int] = None
    used_file_descriptors_percentage: Optional[float] = None
    total_disk_space_in_bytes: Optional[int] = None
    free_disk_space_in_bytes: Optional[int] = None
    used_disk_space_percentage: Optional[float] = None
    io_wait_percentage: Optional[float] = None
    network_interfaces: List[NetworkInterfaceStatusModel] = []

    @classmethod
    def from_status(cls, status: Any) -> "OperatingSystemStatusModel":
        values = {
            name: read_gauge(getattr(status, f"{name}_gauge", None))
            for name in cls.model_fields
            if name != "network_interfaces"
        }
        values["network_interfaces"] = [
            NetworkInterfaceStatusModel(
                name=nic.name,
                received_bytes_per_second=read_gauge(nic.received_bytes_per_second_gauge),
                transmitted_bytes_per_second=read_gauge(nic.transmitted_bytes_per_second_gauge),
            )
            for nic in getattr(status, "network_interface_statuses", ())
        ]
        return cls(**values)


class GarbageCollectorStatusModel(BaseModel):
    """Statistics for one garbage collector generation"""
    model_config = ConfigDict(from_attributes=True)

    generation: int
    collections: int
    collected: int
    uncollectable: int
    last_pause_ms: float
    average_pause_ms: float


class RuntimeStatusModel(BaseModel):
    """Interpreter runtime status snapshot"""
    model_config = ConfigDict(from_attributes=True)

    current_threads: Optional[int] = None
    daemon_threads: Optional[int] = None
    peak_threads: Optional[int] = None
    resident_memory_in_bytes: Optional[int] = None
    virtual_memory_in_bytes: Optional[int] = None
    full_gc_collections: Optional[int] = None
    loaded_modules: Optional[int] = None
    uptime_in_millis: Optional[int] = None
    garbage_collectors: List[GarbageCollectorStatusModel] = []

    @classmethod
    def from_status(cls, status: Any) -> "RuntimeStatusModel":
        values = {
            name: read_gauge(getattr(status, f"{name}_gauge", None))
            for name in cls.model_fields
            if name != "garbage_collectors"
        }
        values["garbage_collectors"] = [
            GarbageCollectorStatusModel(**gc_status)
            for gc_status in getattr(status, "garbage_collector_statuses", [])
        ]
        return cls(**values)


class SystemStatusModel(BaseModel):
    """Root envelope for the system status view"""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    operating_system_status: Optional[OperatingSystemStatusModel] = Field(default=None, alias="operatingSystemStatus")
    jvm_status: Optional[RuntimeStatusModel] = Field(default=None, alias="jvmStatus")

    @classmethod
    def from_statuses(cls, statuses: Mapping[str, Any]) -> "SystemStatusModel":
        """Build from a name -> live status view; missing subsystems stay None."""
        from .system import JVM_SUBSYSTEM, OS_SUBSYSTEM

        os_status = statuses.get(OS_SUBSYSTEM)
        jvm_status = statuses.get(JVM_SUBSYSTEM)
        return cls(
            operating_system_status=OperatingSystemStatusModel.from_status(os_status) if os_status is not None else None,
            jvm_status=RuntimeStatusModel.from_status(jvm_status) if jvm_status is not None else None,
        )


def metric_values(bundle: Any, prefix: Optional[str] = None) -> Dict[str, Any]:
    """Flatten a bundle and read every gauge; non-gauge metrics map to None."""
    return {
        name: read_gauge(metric) if isinstance(metric, Gauge) else None
        for name, metric in flatten_metrics(bundle, prefix).items()
    }
