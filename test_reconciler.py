# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the reconciliation engine: ordering, duty dedup, failure aggregation
and teardown.
Run: pytest test_reconciler.py -v
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest

from oncall_sync.core.errors import AggregateError, InvalidResponse, TransportError
from oncall_sync.models.domain import CallResult, Configuration, Duty, Team, User
from oncall_sync.services.reconciler import Reconciler, day_window

JUNE_1 = int(datetime(2024, 6, 1, tzinfo=timezone.utc).timestamp())
JUNE_2 = JUNE_1 + 24 * 3600


def _two_teams():
    return Configuration(teams=[
        Team(name="A", users=[User(name="ann", duty=[Duty(date="01/06/2024", role="primary")])]),
        Team(name="B", users=[User(name="bea", duty=[Duty(date="02/06/2024", role="primary")])]),
    ])


# ============================================
# Day window
# ============================================
class TestDayWindow:
    def test_window_is_one_utc_day(self):
        assert day_window("01/06/2024") == (JUNE_1, JUNE_2)

    def test_day_month_year_order(self):
        start, _ = day_window("02/01/2024")
        assert datetime.fromtimestamp(start, tz=timezone.utc).month == 1

    @pytest.mark.parametrize("bad", ["2024-06-01", "31/02/2024", "tomorrow"])
    def test_bad_dates_raise(self, bad):
        with pytest.raises(ValueError):
            day_window(bad)


# ============================================
# End-to-end create
# ============================================
class TestCreateEntities:
    def test_call_order_for_one_team(self, reconciler, stub, sre_config):
        report = reconciler.create_entities(sre_config)
        assert report.failures == []
        assert report.error is None
        assert stub.calls == [
            ("POST", "/api/v0/teams/"),
            ("POST", "/api/v0/users/"),
            ("PUT", "/api/v0/users/alice"),
            ("POST", "/api/v0/teams/sre/users"),
            ("GET", "/api/v0/events/"),
            ("POST", "/api/v0/events/"),
        ]

    def test_result_holds_every_call(self, reconciler, sre_config):
        report = reconciler.create_entities(sre_config)
        result = report.results["sre"]
        assert result.team.status_code == 201
        assert result.user_creates["alice"].status_code == 201
        assert result.user_memberships["alice"].status_code == 201

    def test_remote_state_matches_config(self, reconciler, stub, sre_config):
        reconciler.create_entities(sre_config)
        assert stub.teams["sre"]["slack_channel_notifications"] == "sre-alert"
        assert stub.members["sre"] == ["alice"]
        assert stub.users["alice"]["contacts"] == {"call": "+10000000001", "email": "alice@example.com"}
        assert stub.events == [
            {"user": "alice", "team": "sre", "role": "primary", "start": JUNE_1, "end": JUNE_2},
        ]

    def test_second_run_creates_no_duplicate_duties(self, reconciler, stub, sre_config):
        reconciler.create_entities(sre_config)
        stub.reset_calls()
        report = reconciler.create_entities(sre_config)
        assert len(stub.events) == 1
        assert stub.calls_to("POST", "/api/v0/events/") == 0
        assert stub.calls_to("GET", "/api/v0/events/") == 1
        # rejected re-creates are visible in the results, not raised
        assert report.results["sre"].team.status_code == 422
        assert report.failures == []

    def test_repeated_runs_over_many_duties(self, reconciler, stub):
        duties = [Duty(date=f"{d:02d}/06/2024", role=r) for d in range(1, 6) for r in ("primary", "secondary")]
        config = Configuration(teams=[Team(name="sre", users=[User(name="alice", duty=duties)])])
        for _ in range(3):
            reconciler.create_entities(config)
        identities = {(e["user"], e["team"], e["role"], e["start"]) for e in stub.events}
        assert len(stub.events) == len(identities) == 10

    def test_users_processed_in_config_order(self, reconciler, stub):
        config = Configuration(teams=[Team(name="sre", users=[User(name=n) for n in ("zed", "amy", "kim")])])
        reconciler.create_entities(config)
        created = [r for r in stub.requests if r.method == "PUT"]
        assert [r.url.path.rsplit("/", 1)[1] for r in created] == ["zed", "amy", "kim"]


# ============================================
# Failure aggregation
# ============================================
class TestFailures:
    def test_team_a_failure_does_not_block_team_b(self, reconciler, stub):
        stub.overrides[("POST", "/api/v0/teams/")] = httpx.ConnectError("refused")
        stub.overrides[("POST", "/api/v0/teams/B/users")] = httpx.ConnectError("refused")
        report = reconciler.create_entities(_two_teams())

        assert set(report.results) == {"A", "B"}
        assert "bea" in stub.users
        error = report.error
        assert isinstance(error, AggregateError)
        assert ("create_team", "A") in [(f.operation, f.target) for f in error.failures]
        assert ("create_team", "B") in [(f.operation, f.target) for f in error.failures]
        assert ("add_user_to_team", "B/bea") in [(f.operation, f.target) for f in error.failures]
        assert "A" in str(error) and "B" in str(error)

    def test_team_failure_still_populates_membership(self, reconciler, stub, sre_config):
        stub.overrides[("POST", "/api/v0/teams/")] = httpx.ConnectError("refused")
        report = reconciler.create_entities(sre_config)
        assert report.results["sre"].team is None
        assert report.results["sre"].user_memberships["alice"].status_code == 201
        assert len(stub.events) == 1

    def test_failed_user_create_continues_with_other_steps(self, reconciler, stub, sre_config):
        stub.overrides[("POST", "/api/v0/users/")] = httpx.ConnectError("refused")
        report = reconciler.create_entities(sre_config)
        assert report.error.operations() == ["create_user"]
        assert stub.calls_to("POST", "/api/v0/teams/sre/users") == 1
        assert stub.calls_to("POST", "/api/v0/events/") == 1

    def test_duty_errors_are_joined(self, reconciler, stub):
        stub.overrides[("GET", "/api/v0/events/")] = 500
        duties = [Duty(date="01/06/2024", role="primary"), Duty(date="02/06/2024", role="primary")]
        config = Configuration(teams=[Team(name="sre", users=[User(name="alice", duty=duties)])])
        report = reconciler.create_entities(config)
        assert report.error.operations() == ["ensure_day_duty", "ensure_day_duty"]
        assert report.error.targets() == ["sre/alice/01/06/2024", "sre/alice/02/06/2024"]
        assert all(isinstance(f.cause, InvalidResponse) for f in report.error.failures)

    def test_raise_for_failures(self, reconciler, stub, sre_config):
        stub.overrides[("POST", "/api/v0/teams/")] = httpx.ConnectError("refused")
        report = reconciler.create_entities(sre_config)
        with pytest.raises(AggregateError) as exc_info:
            report.raise_for_failures()
        assert isinstance(exc_info.value.failures[0].cause, TransportError)

    def test_no_failures_no_raise(self, reconciler, sre_config):
        reconciler.create_entities(sre_config).raise_for_failures()


# ============================================
# Schedule & dedup
# ============================================
class TestSchedule:
    def test_empty_date_is_skipped_silently(self, reconciler, stub):
        reconciler.create_schedule("alice", "sre", [Duty(date="", role="primary")])
        assert stub.calls == []

    def test_empty_date_never_in_errors(self, reconciler, stub):
        config = Configuration(teams=[Team(name="sre", users=[User(name="alice", duty=[Duty(role="primary")])])])
        report = reconciler.create_entities(config)
        assert report.failures == []
        assert stub.calls_to("GET", "/api/v0/events/") == 0
        assert stub.calls_to("POST", "/api/v0/events/") == 0

    def test_malformed_date_is_skipped(self, reconciler, stub):
        assert reconciler.ensure_day_duty(Duty(date="2024-06-01", role="primary"), "alice", "sre") is None
        assert stub.calls == []

    def test_schedule_failures_raise_aggregate(self, reconciler, stub):
        stub.overrides[("POST", "/api/v0/events/")] = httpx.ConnectError("refused")
        with pytest.raises(AggregateError) as exc_info:
            reconciler.create_schedule("alice", "sre", [Duty(date="01/06/2024", role="primary")])
        assert len(exc_info.value) == 1


class TestEnsureDayDuty:
    def _client(self, existing):
        client = MagicMock()
        client.find_duties.return_value = CallResult("find_duties", "GET", "/api/v0/events/", 200, 0.01, existing)
        client.create_duty.return_value = CallResult("create_duty", "POST", "/api/v0/events/", 201, 0.01)
        return client

    def test_queries_exact_window_and_role(self):
        client = self._client([])
        Reconciler(client).ensure_day_duty(Duty(date="01/06/2024", role="manager"), "alice", "sre")
        client.find_duties.assert_called_once_with("alice", "sre", JUNE_1, JUNE_2, "manager")
        client.create_duty.assert_called_once_with("alice", "sre", JUNE_1, JUNE_2, "manager")

    def test_existing_match_suppresses_create(self):
        client = self._client([{"id": 1}])
        result = Reconciler(client).ensure_day_duty(Duty(date="01/06/2024", role="primary"), "alice", "sre")
        assert result is None
        client.create_duty.assert_not_called()

    def test_several_matches_also_suppress_create(self):
        client = self._client([{"id": 1}, {"id": 2}])
        Reconciler(client).ensure_day_duty(Duty(date="01/06/2024", role="primary"), "alice", "sre")
        client.create_duty.assert_not_called()

    def test_returns_create_result(self):
        client = self._client([])
        result = Reconciler(client).ensure_day_duty(Duty(date="01/06/2024", role="primary"), "alice", "sre")
        assert result.status_code == 201

    def test_failed_lookup_does_not_create(self):
        client = self._client(None)
        client.find_duties.return_value.status_code = 503
        with pytest.raises(InvalidResponse):
            Reconciler(client).ensure_day_duty(Duty(date="01/06/2024", role="primary"), "alice", "sre")
        client.create_duty.assert_not_called()


# ============================================
# Teardown
# ============================================
class TestDeleteEntities:
    def test_removes_links_users_and_teams(self, reconciler, stub, sre_config):
        reconciler.create_entities(sre_config)
        stub.reset_calls()
        assert reconciler.delete_entities(sre_config) is None
        assert stub.calls == [
            ("DELETE", "/api/v0/teams/sre/users/alice"),
            ("DELETE", "/api/v0/users/alice"),
            ("DELETE", "/api/v0/teams/sre"),
        ]
        assert stub.teams == {}
        assert stub.users == {}

    def test_duties_are_left_in_place(self, reconciler, stub, sre_config):
        reconciler.create_entities(sre_config)
        reconciler.delete_entities(sre_config)
        assert len(stub.events) == 1

    def test_failures_do_not_stop_teardown(self, reconciler, stub):
        stub.overrides[("DELETE", "/api/v0/users/ann")] = httpx.ConnectError("refused")
        error = reconciler.delete_entities(_two_teams())
        assert error.operations() == ["delete_user"]
        assert stub.calls_to("DELETE", "/api/v0/users/bea") == 1
        assert stub.calls_to("DELETE", "/api/v0/teams/B") == 1
