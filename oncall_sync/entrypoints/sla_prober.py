# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
SLA prober — periodically create and delete a probe configuration in on-call
and expose scenario metrics on /probe.
"""

import argparse
import sys

from oncall_sync.core.config import Settings, settings
from oncall_sync.core.dependencies import build_client
from oncall_sync.core.errors import InvalidEndpoint, LoginFailed
from oncall_sync.core.logging import get_logger, silence
from oncall_sync.entrypoints._app import create_app
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.services.config_loader import ConfigError, load_config
from oncall_sync.services.prober import SLAProber
from oncall_sync.services.reconciler import Reconciler
from oncall_sync.services.worker import PeriodicWorker

logger = get_logger("oncall-sla-prober")

CLIENT_LOGGERS = (
    "oncall_sync.services.oncall_client",
    "oncall_sync.services.reconciler",
    "oncall_sync.services.session",
)


def build(cfg: Settings, filename: str, transport=None):
    config = load_config(filename)
    if cfg.PROBER_SILENT:
        silence(*CLIENT_LOGGERS)
    sink = MetricsSink()
    client = build_client(cfg, metrics=sink, transport=transport)
    prober = SLAProber(Reconciler(client), config, sink)
    worker = PeriodicWorker(
        "sla-prober",
        work=prober.run_scenarios,
        interval=cfg.PROBER_SCRAPE_INTERVAL,
        renew=client.session.renew,
        renew_interval=cfg.RELOGIN_INTERVAL,
    )
    return create_app("On-call SLA Prober", sink, "/probe", worker)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="On-call SLA prober")
    parser.add_argument("-f", dest="filename", default=settings.CONFIG_FILE,
                        help="yaml config file to read probe data from")
    args = parser.parse_args(argv)
    if not args.filename:
        logger.error("filename must be provided")
        return 1

    try:
        app = build(settings, args.filename)
    except (ConfigError, LoginFailed, InvalidEndpoint) as exc:
        logger.error("Failed to create prober: %s", exc)
        return 1

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PROBER_PORT, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
