# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Roster exporter — on-duty member counts per team and role on /metrics.
"""

import sys

from oncall_sync.core.config import Settings, settings
from oncall_sync.core.dependencies import build_client
from oncall_sync.core.errors import InvalidEndpoint, LoginFailed
from oncall_sync.core.logging import get_logger
from oncall_sync.entrypoints._app import create_app
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.services.exporter import RosterExporter
from oncall_sync.services.worker import PeriodicWorker

logger = get_logger("oncall-roster-exporter")


def build(cfg: Settings, transport=None):
    sink = MetricsSink()
    client = build_client(cfg, metrics=sink, transport=transport)
    exporter = RosterExporter(client, sink)
    worker = PeriodicWorker(
        "roster-exporter",
        work=exporter.update_metrics,
        interval=cfg.EXPORTER_SCRAPE_INTERVAL,
        renew=client.session.renew,
        renew_interval=cfg.RELOGIN_INTERVAL,
    )
    return create_app("On-call Roster Exporter", sink, "/metrics", worker)


def main() -> int:
    try:
        app = build(settings)
    except (LoginFailed, InvalidEndpoint) as exc:
        logger.error("Failed to create exporter: %s", exc)
        return 1

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.EXPORTER_PORT, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
