# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: On-call API client — one method per remote operation.

Every call is bounded by a timeout, timed around the round trip and returned
as a ``CallResult``. Transport failures raise ``TransportError``; unexpected
status codes are logged as warnings and handed back in the result, because
the reconciliation engine has to keep going across many independent entities.
"""

import time
from typing import Any, Optional

import httpx

from oncall_sync.core.errors import InvalidRequest, InvalidResponse, TransportError
from oncall_sync.core.logging import get_logger
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.models.domain import CallResult, Team, User
from oncall_sync.schemas.oncall import (
    EventCreateRequest,
    NameRequest,
    TeamCreateRequest,
    UserUpdateRequest,
)
from oncall_sync.services.session import Session, join_url

logger = get_logger(__name__)

TEAMS_ENDPOINT = "/api/v0/teams/"
USERS_ENDPOINT = "/api/v0/users/"
EVENTS_ENDPOINT = "/api/v0/events/"

CREATED = (201,)
DELETED = (200, 204)


class OncallClient:
    """Typed access to the on-call API over an authenticated ``Session``."""

    def __init__(
        self,
        session: Session,
        timeout: float = 10.0,
        metrics: Optional[MetricsSink] = None,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._metrics = metrics

    @property
    def session(self) -> Session:
        return self._session

    # ── Transport ──

    def _send(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        mutating: bool = False,
        expected: tuple[int, ...] = (),
        context: Optional[dict[str, Any]] = None,
    ) -> tuple[CallResult, httpx.Response]:
        extra = {"action": operation, **(context or {})}
        headers = self._session.mutation_headers() if mutating else {}
        try:
            request = self._session.http.build_request(
                method, url, json=body, params=params, headers=headers, timeout=self._timeout,
            )
        except (TypeError, ValueError) as exc:
            logger.error("Could not build request: %s", exc, extra=extra)
            raise InvalidRequest(f"{operation}: {exc}") from exc

        path = request.url.path
        start = time.monotonic()
        try:
            res = self._session.http.send(request)
        except httpx.HTTPError as exc:
            logger.error("Request failed: %s", exc, extra={**extra, "path": path})
            raise TransportError(f"{operation} {method} {path}: {exc}", path=path) from exc
        elapsed = time.monotonic() - start

        result = CallResult(
            operation=operation,
            method=method,
            path=path,
            status_code=res.status_code,
            elapsed=elapsed,
        )
        if self._metrics is not None:
            self._metrics.observe_call(result)
        logger.info(
            "%s %s -> %d",
            method,
            path,
            res.status_code,
            extra={**extra, "path": path, "status_code": res.status_code},
        )
        if expected and res.status_code not in expected:
            logger.warning(
                "Unexpected status code, wanted %s: %s",
                "/".join(str(c) for c in expected),
                res.text[:500],
                extra={**extra, "path": path, "status_code": res.status_code},
            )
        return result, res

    @staticmethod
    def _decode(result: CallResult, res: httpx.Response) -> Any:
        try:
            return res.json()
        except ValueError as exc:
            raise InvalidResponse(
                f"{result.operation}: undecodable response from {result.path}"
            ) from exc

    # ── Teams ──

    def create_team(self, team: Team) -> CallResult:
        url = join_url(self._session.base_url, TEAMS_ENDPOINT)
        result, _ = self._send(
            "create_team", "POST", url,
            body=TeamCreateRequest.from_team(team).payload(),
            mutating=True,
            expected=CREATED,
            context={"team": team.name},
        )
        return result

    def list_teams(self) -> CallResult[list[str]]:
        url = join_url(self._session.base_url, TEAMS_ENDPOINT)
        result, res = self._send("list_teams", "GET", url)
        if result.ok:
            result.data = list(self._decode(result, res))
        return result

    def get_summary(self, team: str) -> CallResult[dict[str, int]]:
        """Count on-duty members per role in the team's current rotation."""
        url = join_url(self._session.base_url, TEAMS_ENDPOINT, team, "summary")
        result, res = self._send("get_summary", "GET", url, context={"team": team})
        if not result.ok:
            return result
        payload = self._decode(result, res)
        current = payload.get("current") if isinstance(payload, dict) else None
        result.data = {role: len(members or []) for role, members in (current or {}).items()}
        return result

    def delete_team(self, team: str) -> CallResult:
        url = join_url(self._session.base_url, TEAMS_ENDPOINT, team)
        result, _ = self._send(
            "delete_team", "DELETE", url,
            mutating=True, expected=DELETED, context={"team": team},
        )
        return result

    # ── Users ──

    def create_user(self, user: User) -> CallResult:
        """Create the user by name, then PUT the full profile.

        The profile update runs whenever the create call reached the server,
        whatever its status; its own outcome is only logged. The returned
        result is the create call's.
        """
        url = join_url(self._session.base_url, USERS_ENDPOINT)
        profile_url = join_url(self._session.base_url, USERS_ENDPOINT, user.name)
        context = {"user": user.name}
        result, _ = self._send(
            "create_user", "POST", url,
            body=NameRequest(name=user.name).payload(),
            mutating=True,
            expected=CREATED,
            context=context,
        )

        try:
            self._send(
                "update_user", "PUT", profile_url,
                body=UserUpdateRequest.from_user(user).payload(),
                mutating=True,
                expected=(200, 204),
                context=context,
            )
        except (TransportError, InvalidRequest) as exc:
            logger.warning("Profile update failed: %s", exc, extra={"action": "update_user", **context})
        return result

    def delete_user(self, username: str) -> CallResult:
        url = join_url(self._session.base_url, USERS_ENDPOINT, username)
        result, _ = self._send(
            "delete_user", "DELETE", url,
            mutating=True, expected=DELETED, context={"user": username},
        )
        return result

    # ── Membership ──

    def add_user_to_team(self, username: str, teamname: str) -> CallResult:
        url = join_url(self._session.base_url, TEAMS_ENDPOINT, teamname, "users")
        result, _ = self._send(
            "add_user_to_team", "POST", url,
            body=NameRequest(name=username).payload(),
            mutating=True,
            expected=CREATED,
            context={"user": username, "team": teamname},
        )
        return result

    def remove_user_from_team(self, username: str, teamname: str) -> CallResult:
        url = join_url(self._session.base_url, TEAMS_ENDPOINT, teamname, "users", username)
        result, _ = self._send(
            "remove_user_from_team", "DELETE", url,
            mutating=True,
            expected=DELETED,
            context={"user": username, "team": teamname},
        )
        return result

    # ── Events ──

    def find_duties(
        self, username: str, teamname: str, start: int, end: int, role: str
    ) -> CallResult[list]:
        """Events matching (user, team, role) inside ``[start, end)``."""
        url = join_url(self._session.base_url, EVENTS_ENDPOINT)
        result, res = self._send(
            "find_duties", "GET", url,
            params={
                "user": username,
                "team": teamname,
                "start": start,
                "end": end,
                "role": role,
            },
            context={"user": username, "team": teamname, "role": role},
        )
        if result.ok:
            payload = self._decode(result, res)
            result.data = list(payload) if isinstance(payload, list) else []
        return result

    def create_duty(
        self, username: str, teamname: str, start: int, end: int, role: str
    ) -> CallResult:
        url = join_url(self._session.base_url, EVENTS_ENDPOINT)
        body = EventCreateRequest(user=username, team=teamname, role=role, start=start, end=end)
        result, _ = self._send(
            "create_duty", "POST", url,
            body=body.payload(),
            mutating=True,
            expected=CREATED,
            context={"user": username, "team": teamname, "role": role},
        )
        return result
