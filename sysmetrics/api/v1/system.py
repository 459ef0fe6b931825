"""System metrics REST API endpoints.

Exposes the live status view of the active SystemMetricSet and the flattened
registry values a metrics backend would register.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from sysmetrics.services.metrics.aggregator import MetricAggregator
from sysmetrics.services.metrics.instance import get_system_metric_set
from sysmetrics.services.metrics.models import SystemStatusModel, metric_values

router = APIRouter(prefix="/system", tags=["system"])

SYSTEM_METRIC_NAMESPACE = "system"


def get_metric_set() -> MetricAggregator:
    """FastAPI dependency for the active metric aggregator.

    Raises:
        HTTPException: 503 if system metrics are disabled or not started
    """
    metric_set = get_system_metric_set()
    if metric_set is None:
        raise HTTPException(
            status_code=503,
            detail="System metrics are not available. Set SYSMETRICS_ENABLE_SYSTEM_METRICS=true to enable."
        )
    return metric_set


@router.get("/status", response_model=SystemStatusModel)
async def get_system_status(metric_set: MetricAggregator = Depends(get_metric_set)):
    """Snapshot of the OS and runtime status views."""
    return SystemStatusModel.from_statuses(metric_set.get_statuses())


@router.get("/metrics", response_model=Dict[str, Any])
async def get_system_metrics(metric_set: MetricAggregator = Depends(get_metric_set)):
    """Current value of every registered metric, keyed by its dotted name."""
    return metric_values(metric_set, SYSTEM_METRIC_NAMESPACE)
