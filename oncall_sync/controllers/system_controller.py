# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health and metrics exposition.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.responses import Response

from oncall_sync.core.config import settings
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.services.worker import PeriodicWorker


def build_router(
    sink: MetricsSink,
    metrics_path: str = "/metrics",
    worker: Optional[PeriodicWorker] = None,
) -> APIRouter:
    router = APIRouter(tags=["System"])

    @router.get("/health")
    def health_check():
        """Liveness probe for Docker and orchestration."""
        return {
            "status": "ok",
            "service": settings.SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "worker_running": worker is not None and not worker.stopped,
        }

    @router.get(metrics_path)
    def prometheus_metrics():
        """Expose the process's metrics registry."""
        return Response(content=sink.render(), media_type=CONTENT_TYPE_LATEST)

    return router
