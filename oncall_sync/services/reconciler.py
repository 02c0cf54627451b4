# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Reconciliation engine — drive the on-call API toward a configuration.

Teams are processed in configuration order, users in team order, strictly
sequentially. A failed step is logged, recorded as an ``OperationFailure``
and never retried within the same pass; nothing short-circuits the remaining
teams, users or steps.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from oncall_sync.core.errors import (
    AggregateError,
    InvalidResponse,
    OncallError,
    OperationFailure,
)
from oncall_sync.core.logging import get_logger
from oncall_sync.models.domain import (
    CallResult,
    Configuration,
    Duty,
    Team,
    TeamReconciliationResult,
    User,
)
from oncall_sync.services.oncall_client import OncallClient

logger = get_logger(__name__)

DUTY_DATE_FORMAT = "%d/%m/%Y"
DUTY_LENGTH = timedelta(hours=24)


def day_window(date: str) -> tuple[int, int]:
    """Unix seconds of ``[start_of_day(date), start_of_day(date) + 24h)`` in UTC."""
    start = datetime.strptime(date, DUTY_DATE_FORMAT).replace(tzinfo=timezone.utc)
    end = start + DUTY_LENGTH
    return int(start.timestamp()), int(end.timestamp())


@dataclass
class ReconciliationReport:
    """Per-team results plus every failure collected during the pass."""

    results: dict[str, TeamReconciliationResult] = field(default_factory=dict)
    failures: list[OperationFailure] = field(default_factory=list)

    @property
    def error(self) -> Optional[AggregateError]:
        return AggregateError.from_failures(self.failures)

    def raise_for_failures(self) -> None:
        error = self.error
        if error is not None:
            raise error


class Reconciler:
    """Create or tear down the teams, users and duties of a configuration."""

    def __init__(self, client: OncallClient) -> None:
        self._client = client

    # ── Create ──

    def create_entities(self, config: Configuration) -> ReconciliationReport:
        report = ReconciliationReport()
        for team in config.teams:
            result, failures = self.reconcile_team(team)
            report.results[team.name] = result
            report.failures.extend(failures)
        if report.failures:
            logger.warning(
                "Reconciliation finished with %d failure(s)",
                len(report.failures),
                extra={"action": "create_entities"},
            )
        else:
            logger.info(
                "Reconciliation finished: %d team(s)",
                len(report.results),
                extra={"action": "create_entities"},
            )
        return report

    def reconcile_team(
        self, team: Team
    ) -> tuple[TeamReconciliationResult, list[OperationFailure]]:
        """Create the team, then every user, membership and schedule in it.

        A failed team create does not stop membership reconciliation: the team
        may already exist from an earlier partial run.
        """
        result = TeamReconciliationResult()
        failures: list[OperationFailure] = []

        try:
            result.team = self._client.create_team(team)
        except OncallError as exc:
            logger.warning(
                "Error creating team: %s", exc,
                extra={"action": "create_team", "team": team.name},
            )
            failures.append(OperationFailure("create_team", team.name, exc))

        for user in team.users:
            failures.extend(self._reconcile_member(team, user, result))
        return result, failures

    def _reconcile_member(
        self, team: Team, user: User, result: TeamReconciliationResult
    ) -> list[OperationFailure]:
        failures: list[OperationFailure] = []
        target = f"{team.name}/{user.name}"
        extra = {"team": team.name, "user": user.name}

        try:
            result.user_creates[user.name] = self._client.create_user(user)
        except OncallError as exc:
            logger.warning("Error creating user: %s", exc, extra={"action": "create_user", **extra})
            failures.append(OperationFailure("create_user", target, exc))

        try:
            result.user_memberships[user.name] = self._client.add_user_to_team(user.name, team.name)
        except OncallError as exc:
            logger.warning(
                "Error adding user to team: %s", exc,
                extra={"action": "add_user_to_team", **extra},
            )
            failures.append(OperationFailure("add_user_to_team", target, exc))

        try:
            self.create_schedule(user.name, team.name, user.duties)
        except AggregateError as exc:
            logger.warning("Error creating schedule: %s", exc, extra={"action": "create_schedule", **extra})
            failures.extend(exc.failures)
        return failures

    # ── Schedule ──

    def create_schedule(self, username: str, teamname: str, duties: list[Duty]) -> None:
        """Ensure every dated duty exists. Raises AggregateError on failures."""
        logger.info(
            "Creating schedule",
            extra={"action": "create_schedule", "user": username, "team": teamname},
        )
        failures: list[OperationFailure] = []
        for duty in duties:
            if not duty.date:
                continue
            try:
                self.ensure_day_duty(duty, username, teamname)
            except OncallError as exc:
                failures.append(
                    OperationFailure("ensure_day_duty", f"{teamname}/{username}/{duty.date}", exc)
                )
        error = AggregateError.from_failures(failures)
        if error is not None:
            raise error

    def ensure_day_duty(self, duty: Duty, username: str, teamname: str) -> Optional[CallResult]:
        """Create the duty unless one with the same identity already exists.

        Returns the create call's result, or ``None`` when nothing was created
        (already present, empty or unparseable date).
        """
        extra = {"action": "ensure_day_duty", "user": username, "team": teamname, "role": duty.role}
        if not duty.date:
            return None
        try:
            start, end = day_window(duty.date)
        except ValueError as exc:
            logger.error("Skipping duty with unparseable date %r: %s", duty.date, exc, extra=extra)
            return None

        existing = self._client.find_duties(username, teamname, start, end, duty.role)
        if not existing.ok:
            raise InvalidResponse(
                f"duty lookup for {teamname}/{username} returned {existing.status_code}"
            )
        if existing.data:
            logger.info("Duty already exists for %s", duty.date, extra=extra)
            return None
        return self._client.create_duty(username, teamname, start, end, duty.role)

    # ── Delete ──

    def delete_entities(self, config: Configuration) -> Optional[AggregateError]:
        """Best-effort teardown of every user and team in the configuration.

        Duty entries are left in place. Returns the collected failures, or
        ``None`` when everything was removed.
        """
        failures: list[OperationFailure] = []
        for team in config.teams:
            for user in team.users:
                target = f"{team.name}/{user.name}"
                failures.extend(
                    self._attempt(
                        "remove_user_from_team", target,
                        self._client.remove_user_from_team, user.name, team.name,
                    )
                )
                failures.extend(
                    self._attempt("delete_user", target, self._client.delete_user, user.name)
                )
            failures.extend(
                self._attempt("delete_team", team.name, self._client.delete_team, team.name)
            )
        error = AggregateError.from_failures(failures)
        if error is not None:
            logger.warning("Teardown incomplete: %s", error, extra={"action": "delete_entities"})
        return error

    @staticmethod
    def _attempt(operation: str, target: str, call, *args) -> list[OperationFailure]:
        try:
            call(*args)
        except OncallError as exc:
            logger.warning("Error in %s: %s", operation, exc, extra={"action": operation})
            return [OperationFailure(operation, target, exc)]
        return []
