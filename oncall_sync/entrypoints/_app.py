# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""FastAPI app shared by the exporter and the prober: metrics + worker lifespan."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from oncall_sync.controllers.system_controller import build_router
from oncall_sync.core.logging import get_logger
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.services.worker import PeriodicWorker

logger = get_logger(__name__)


def create_app(
    title: str,
    sink: MetricsSink,
    metrics_path: str = "/metrics",
    worker: Optional[PeriodicWorker] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        if worker is not None:
            worker.start()
        yield
        if worker is not None:
            worker.stop(timeout=5.0)
            logger.info("Shutting down — worker %s stopped", worker.name)

    app = FastAPI(title=title, lifespan=lifespan)
    app.include_router(build_router(sink, metrics_path, worker))
    return app
