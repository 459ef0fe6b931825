"""System metric aggregation and lifecycle coordination.

This module composes independent metric providers (operating system,
interpreter runtime, or any other MetricProvider) into a single named
registry, exposes a live read-only status view over them, and shuts the whole
aggregate down exactly once.
"""

from .aggregator import MetricAggregator
from .errors import ConfigurationError, DuplicateProviderError, MetricsError, ProviderShutdownError
from .instance import get_system_metric_set, set_system_metric_set
from .provider import Gauge, Metric, MetricProvider, MetricSet, flatten_metrics
from .system import SystemMetricSet

__all__ = [
    "MetricAggregator",
    "SystemMetricSet",
    "Metric",
    "Gauge",
    "MetricSet",
    "MetricProvider",
    "flatten_metrics",
    "MetricsError",
    "ConfigurationError",
    "DuplicateProviderError",
    "ProviderShutdownError",
    "get_system_metric_set",
    "set_system_metric_set",
]
