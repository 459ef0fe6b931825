"""Module-level singleton accessor for the active system metric set.

The application lifespan installs a SystemMetricSet at startup and clears it
after shutting it down. Readers get None while nothing is installed.
"""

from typing import Optional

from .aggregator import MetricAggregator

# Module-level singleton instance - empty until startup installs one
_metric_set: Optional[MetricAggregator] = None


def get_system_metric_set() -> Optional[MetricAggregator]:
    """Get the currently active metric aggregator, if any."""
    return _metric_set


def set_system_metric_set(metric_set: Optional[MetricAggregator]) -> None:
    """Replace the active metric aggregator.

    Args:
        metric_set: The aggregator to expose, or None to clear it
    """
    global _metric_set
    _metric_set = metric_set
