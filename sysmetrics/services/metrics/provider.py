"""Metric instruments and the MetricProvider capability.

A provider is anything exposing a named bundle of metrics and a shutdown
operation. Bundles nest: a MetricSet is itself a Metric, so a provider's
bundle may hold other providers' bundles under a namespace.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable

SEPARATOR = "."

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_\-]")


def sanitize(name: str) -> str:
    """Replace every character that is unsafe in a metric name with '_'."""
    return _UNSAFE_CHARS.sub("_", name)


def join(namespace: str, *names: str) -> str:
    """Join a namespace with further name parts, sanitizing the extra parts.

    Example:
        join("networkInterfaces", "eth0:1") -> "networkInterfaces.eth0_1"
    """
    parts = [namespace] + [sanitize(n) for n in names]
    return SEPARATOR.join(p for p in parts if p)


class Metric:
    """Marker base class for every metric instrument."""


class Gauge(Metric):
    """A metric whose value is computed on every read.

    The supplier is called each time ``value`` is accessed; nothing is cached.
    """

    def __init__(self, supplier: Callable[[], Any]):
        self._supplier = supplier

    @property
    def value(self) -> Any:
        return self._supplier()

    def __repr__(self) -> str:
        return f"Gauge({self._supplier!r})"


@runtime_checkable
class MetricProvider(Protocol):
    """Capability contract for a metric-producing subsystem."""

    def get_metrics(self) -> Mapping[str, Metric]:
        """Return the provider's bundle as metric name -> metric."""
        ...

    def shutdown(self) -> None:
        """Release background samplers, hooks and other held resources."""
        ...


class MetricSet(Metric, ABC):
    """A named bundle of metrics that is itself a metric.

    Concrete providers subclass this so they can be nested inside another
    provider's bundle.
    """

    @abstractmethod
    def get_metrics(self) -> Mapping[str, Metric]:
        ...

    def shutdown(self) -> None:
        """Default: nothing to release."""


def flatten_metrics(bundle: Any, prefix: Optional[str] = None) -> Dict[str, Metric]:
    """Walk nested bundles and return dotted name -> leaf metric.

    Args:
        bundle: A MetricProvider (or anything with get_metrics())
        prefix: Optional namespace prepended to every name

    Returns:
        Insertion-ordered dict of fully qualified names to leaf metrics
    """
    flat: Dict[str, Metric] = {}
    for name, metric in bundle.get_metrics().items():
        # names inside a bundle are already dotted and sanitized
        full_name = f"{prefix}{SEPARATOR}{name}" if prefix else name
        if isinstance(metric, MetricSet) or (
            not isinstance(metric, Gauge) and hasattr(metric, "get_metrics")
        ):
            flat.update(flatten_metrics(metric, full_name))
        else:
            flat[full_name] = metric
    return flat
