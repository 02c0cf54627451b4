# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
SLA checker — record SLI vs SLO for every configured metric each interval.
"""

import signal
import sys

from sqlalchemy.exc import SQLAlchemyError

from oncall_sync.core.config import settings
from oncall_sync.core.dependencies import build_prometheus_client, build_sla_repository
from oncall_sync.core.logging import get_logger
from oncall_sync.services.config_loader import ConfigError, load_sla_metrics
from oncall_sync.services.sla_checker import SLAChecker
from oncall_sync.services.worker import PeriodicWorker

logger = get_logger("oncall-sla-checker")


def main() -> int:
    if not settings.DATABASE_URL or not settings.METRICS_FILE:
        logger.error("DATABASE_URL and METRICS_FILE must be set")
        return 1
    try:
        metrics = load_sla_metrics(settings.METRICS_FILE)
    except ConfigError as exc:
        logger.error("Error loading metrics: %s", exc)
        return 1

    repository = build_sla_repository(settings)
    try:
        repository.run_migrations()
    except SQLAlchemyError as exc:
        logger.error("Migrations failed: %s", exc)
        return 1

    checker = SLAChecker(metrics, build_prometheus_client(settings), repository)
    worker = PeriodicWorker("sla-checker", work=checker.check, interval=settings.SLA_SCRAPE_INTERVAL)
    signal.signal(signal.SIGTERM, lambda *_: worker.stop())
    try:
        worker.run()
    except KeyboardInterrupt:
        worker.stop()
    logger.info("App is stopping")
    return 0


if __name__ == "__main__":
    sys.exit(main())
