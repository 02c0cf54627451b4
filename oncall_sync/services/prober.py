# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: SLA prober — create the probe configuration, measure, tear it down.
"""

from oncall_sync.core.logging import get_logger
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.models.domain import Configuration
from oncall_sync.services.reconciler import ReconciliationReport, Reconciler

logger = get_logger(__name__)


class SLAProber:
    def __init__(self, reconciler: Reconciler, config: Configuration, metrics: MetricsSink) -> None:
        self._reconciler = reconciler
        self._config = config
        self._metrics = metrics

    def run_scenarios(self) -> ReconciliationReport:
        """One probe cycle. Teardown runs even if creation blew up."""
        try:
            report = self._reconciler.create_entities(self._config)
        finally:
            self._reconciler.delete_entities(self._config)

        if report.failures:
            logger.warning("Probe cycle errors: %s", report.error, extra={"action": "probe"})
        self.record(report)
        return report

    def record(self, report: ReconciliationReport) -> None:
        """Derive scenario counters and durations from the creation results."""
        for team in self._config.teams:
            stats = report.results.get(team.name)
            self._metrics.record_scenario("create_team", stats.team if stats else None)
            for user in team.users:
                self._metrics.record_scenario(
                    "create_user", stats.user_creates.get(user.name) if stats else None
                )
                self._metrics.record_scenario(
                    "add_user_to_team", stats.user_memberships.get(user.name) if stats else None
                )
