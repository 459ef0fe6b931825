"""MetricAggregator - composes named metric providers and shuts them down once.

The aggregator owns an ordered, fixed set of (name, provider) pairs. The
name -> bundle registry is built eagerly at construction and handed out as a
read-only view, so concurrent readers never need a lock. Shutdown is the only
mutating operation and runs its body exactly once per instance.
"""

import threading
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sysmetrics.core.logging_config import get_logger
from .errors import ConfigurationError, DuplicateProviderError, ProviderShutdownError
from .provider import Metric, MetricProvider, MetricSet

logger = get_logger(__name__)


class MetricAggregator(MetricSet):
    """Aggregates providers under caller-chosen subsystem names.

    Example:
    ```python
    aggregator = MetricAggregator([("os", os_metrics), ("jvm", runtime_metrics)])
    aggregator.get_metrics()["os"]      # the os provider's bundle
    aggregator.get_status("jvm")        # the live runtime status object
    aggregator.shutdown()               # stops os, then jvm; later calls are no-ops
    ```
    """

    def __init__(self, providers: Iterable[Tuple[str, MetricProvider]] = ()):
        """Wire providers and build the immutable registry.

        Args:
            providers: (name, provider) pairs; order defines shutdown order

        Raises:
            ConfigurationError: If a name is empty
            DuplicateProviderError: If a name is registered twice
        """
        providers_by_names: Dict[str, MetricProvider] = {}
        for name, provider in providers:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"Metric provider name must be a non-empty string, got {name!r}")
            if name in providers_by_names:
                raise DuplicateProviderError(name)
            providers_by_names[name] = provider

        self._providers: Tuple[Tuple[str, MetricProvider], ...] = tuple(providers_by_names.items())
        self._providers_view: Mapping[str, MetricProvider] = MappingProxyType(providers_by_names)
        self._metrics_view: Mapping[str, Metric] = MappingProxyType(dict(providers_by_names))

        self._shutdown = False
        self._shutdown_lock = threading.Lock()

        logger.debug(f"Metric aggregator wired with subsystems: {list(providers_by_names)}")

    @property
    def names(self) -> Tuple[str, ...]:
        """Registered subsystem names in registration order."""
        return tuple(name for name, _ in self._providers)

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def get_metrics(self) -> Mapping[str, Metric]:
        """Read-only subsystem name -> metric bundle mapping."""
        return self._metrics_view

    def get_status(self, name: str) -> Any:
        """Live status object of one subsystem (the provider itself, not a copy).

        Raises:
            KeyError: If no subsystem was registered under ``name``
        """
        return self._providers_view[name]

    def get_statuses(self) -> Mapping[str, Any]:
        """Read-only subsystem name -> live status view."""
        return self._providers_view

    def shutdown(self) -> None:
        """Shut down every provider exactly once, in registration order.

        Only the first caller runs the teardown; every other caller, concurrent
        or later, returns immediately. A failing provider does not stop the
        remaining ones from being shut down.

        Raises:
            ProviderShutdownError: From the first call only, listing every
                provider that failed
            KeyboardInterrupt, SystemExit: Re-raised once every provider
                has been attempted
        """
        with self._shutdown_lock:
            if self._shutdown:
                return
            self._shutdown = True

        errors: List[Tuple[str, BaseException]] = []
        interrupt: Optional[BaseException] = None
        for name, provider in self._providers:
            try:
                provider.shutdown()
                logger.info(f"Metric provider '{name}' shut down")
            except Exception as e:
                logger.error(f"Error shutting down metric provider '{name}': {e}", exc_info=True)
                errors.append((name, e))
            except BaseException as e:
                # KeyboardInterrupt/SystemExit: finish the teardown, then re-raise
                logger.warning(f"Shutdown of metric provider '{name}' interrupted by {type(e).__name__}")
                if interrupt is None:
                    interrupt = e

        if interrupt is not None:
            raise interrupt
        if errors:
            raise ProviderShutdownError(errors)
