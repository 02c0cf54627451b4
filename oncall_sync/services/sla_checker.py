# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: SLA checker — compare Prometheus SLIs with their objectives and keep
one row per metric per cycle.
"""

from oncall_sync.core.errors import OncallError
from oncall_sync.core.logging import get_logger
from oncall_sync.models.domain import SLAMetric
from oncall_sync.repositories.sla_repository import SLARepository
from oncall_sync.services.prometheus_query import PrometheusQueryClient

logger = get_logger(__name__)


class SLAChecker:
    def __init__(
        self,
        metrics: list[SLAMetric],
        prometheus: PrometheusQueryClient,
        repository: SLARepository,
    ) -> None:
        self._metrics = metrics
        self._prometheus = prometheus
        self._repo = repository

    def fetch_sli(self, metric: SLAMetric) -> float:
        """Current SLI, or the metric's default when it cannot be read."""
        try:
            return self._prometheus.query(metric.metric)
        except OncallError as exc:
            logger.error(
                "Error fetching metric, using default %s: %s", metric.default_sli, exc,
                extra={"metric": metric.alias},
            )
            return metric.default_sli

    def check(self) -> None:
        """Insert one record per configured metric. DB errors propagate."""
        for metric in self._metrics:
            value = self.fetch_sli(metric)
            met = metric.is_met(value)
            self._repo.insert_record(metric.alias, metric.metric, metric.slo, value, met)
            logger.info(
                "SLA %s: value=%s slo=%s met=%s", metric.alias, value, metric.slo, met,
                extra={"metric": metric.alias},
            )
