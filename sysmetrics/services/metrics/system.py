"""SystemMetricSet - the reference wiring of OS and runtime providers.

Registers the operating system provider under "os" and the interpreter
runtime provider under "jvm", in that order, so teardown stops the OS
samplers before the runtime hooks.
"""

from typing import Optional

from .aggregator import MetricAggregator
from .os_provider import OperatingSystemMetricSet
from .runtime_provider import RuntimeMetricSet

OS_SUBSYSTEM = "os"
JVM_SUBSYSTEM = "jvm"


class SystemMetricSet(MetricAggregator):
    """Aggregate of system-level metrics with typed status accessors."""

    def __init__(
        self,
        operating_system: Optional[OperatingSystemMetricSet] = None,
        runtime: Optional[RuntimeMetricSet] = None,
    ):
        owns_operating_system = operating_system is None
        if owns_operating_system:
            operating_system = OperatingSystemMetricSet()
        if runtime is None:
            try:
                runtime = RuntimeMetricSet()
            except Exception:
                # samplers started above have no other owner yet
                if owns_operating_system:
                    operating_system.shutdown()
                raise

        super().__init__([
            (OS_SUBSYSTEM, operating_system),
            (JVM_SUBSYSTEM, runtime),
        ])

    @property
    def operating_system_status(self) -> OperatingSystemMetricSet:
        return self.get_status(OS_SUBSYSTEM)

    @property
    def jvm_status(self) -> RuntimeMetricSet:
        return self.get_status(JVM_SUBSYSTEM)
