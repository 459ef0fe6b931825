from contextlib import asynccontextmanager

from fastapi import FastAPI

from sysmetrics.api.v1 import router as api_router
from sysmetrics.core.config import settings
from sysmetrics.core.logging_config import get_logger
from sysmetrics.services.metrics import (
    ProviderShutdownError,
    SystemMetricSet,
    get_system_metric_set,
    set_system_metric_set,
)

logger = get_logger("app")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Startup
    if settings.ENABLE_SYSTEM_METRICS:
        set_system_metric_set(SystemMetricSet())
        logger.info("System metrics started")
    else:
        logger.info("System metrics disabled")

    yield

    # Shutdown
    metric_set = get_system_metric_set()
    if metric_set is not None:
        try:
            metric_set.shutdown()
        except ProviderShutdownError as e:
            logger.error(f"System metrics shut down with errors: {e}")
        set_system_metric_set(None)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="System metric aggregation service",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.include_router(api_router)
