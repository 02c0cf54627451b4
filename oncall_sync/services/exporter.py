# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster exporter — publish on-duty member counts per team and role.
"""

from oncall_sync.core.errors import AggregateError, OncallError, OperationFailure
from oncall_sync.core.logging import get_logger
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.services.oncall_client import OncallClient

logger = get_logger(__name__)


class RosterExporter:
    def __init__(self, client: OncallClient, metrics: MetricsSink) -> None:
        self._client = client
        self._metrics = metrics

    def update_metrics(self) -> None:
        """Refresh ``oncall_avail_users`` for every team.

        Raises the team listing error directly; per-team summary failures are
        collected into an AggregateError after all teams were tried.
        """
        teams = self._client.list_teams()
        if teams.data is None:
            logger.warning(
                "Team listing unavailable",
                extra={"action": "update_metrics", "status_code": teams.status_code},
            )
            return

        # teams or roles gone from the roster stop being exported
        self._metrics.clear_available_users()
        failures: list[OperationFailure] = []
        for team in teams.data:
            try:
                summary = self._client.get_summary(team)
            except OncallError as exc:
                failures.append(OperationFailure("get_summary", team, exc))
                continue
            if summary.data is None:
                continue
            for role, count in summary.data.items():
                self._metrics.set_available_users(team, role, count)

        error = AggregateError.from_failures(failures)
        if error is not None:
            raise error
