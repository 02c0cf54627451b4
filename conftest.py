# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shared fixtures: an in-memory stand-in for the on-call API behind
``httpx.MockTransport``, plus a logged-in client wired to it.
"""

import json
from typing import Any

import httpx
import pytest

from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.models.domain import Configuration, Duty, Team, User
from oncall_sync.services.oncall_client import OncallClient
from oncall_sync.services.reconciler import Reconciler
from oncall_sync.services.session import Session

BASE_URL = "http://oncall.test"
CSRF_TOKEN = "csrf-123"


class StubOncall:
    """Stateful fake of the on-call API; records every request it sees."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []
        self.teams: dict[str, dict[str, Any]] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.members: dict[str, list[str]] = {}
        self.events: list[dict[str, Any]] = []
        self.summaries: dict[str, Any] = {}
        self.token = CSRF_TOKEN
        self.login_count = 0
        # (method, path) -> int status, JSON body, or Exception to raise
        self.overrides: dict[tuple[str, str], Any] = {}

    # ── helpers ──

    def calls_to(self, method: str, path: str) -> int:
        return self.calls.count((method, path))

    def reset_calls(self) -> None:
        self.calls.clear()
        self.requests.clear()

    @staticmethod
    def _json(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    # ── transport entry point ──

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        self.requests.append(request)

        override = self.overrides.get((method, path))
        if isinstance(override, Exception):
            raise override
        if isinstance(override, int):
            return httpx.Response(override, json={"error": "stubbed"})
        if override is not None:
            return httpx.Response(200, json=override)

        if path == "/login":
            self.login_count += 1
            return httpx.Response(
                200,
                json={"csrf_token": self.token},
                headers={"Set-Cookie": "oncall-auth=session; Path=/"},
            )
        if method in ("POST", "PUT", "DELETE") and request.headers.get("X-CSRF-TOKEN") != self.token:
            return httpx.Response(403, json={"error": "bad csrf"})
        return self._route(method, path.rstrip("/").split("/")[1:], request)

    def _route(self, method: str, parts: list[str], request: httpx.Request) -> httpx.Response:
        # parts: ["api", "v0", resource, ...]
        if len(parts) < 3:
            return httpx.Response(404)
        resource, rest = parts[2], parts[3:]
        if resource == "teams":
            return self._teams(method, rest, request)
        if resource == "users":
            return self._users(method, rest, request)
        if resource == "events":
            return self._events(method, request)
        return httpx.Response(404)

    def _teams(self, method, rest, request):
        if not rest:
            if method == "GET":
                return httpx.Response(200, json=list(self.teams))
            body = self._json(request)
            if body["name"] in self.teams:
                return httpx.Response(422, json={"title": "team already exists"})
            self.teams[body["name"]] = body
            self.members[body["name"]] = []
            return httpx.Response(201)
        team = rest[0]
        if rest[1:] == ["summary"]:
            return httpx.Response(200, json=self.summaries.get(team, {"current": {}, "next": {}}))
        if rest[1:] == ["users"] and method == "POST":
            name = self._json(request)["name"]
            self.members.setdefault(team, [])
            if name in self.members[team]:
                return httpx.Response(422, json={"title": "user already in team"})
            self.members[team].append(name)
            return httpx.Response(201)
        if len(rest) == 3 and rest[1] == "users" and method == "DELETE":
            if rest[2] in self.members.get(team, []):
                self.members[team].remove(rest[2])
            return httpx.Response(200)
        if len(rest) == 1 and method == "DELETE":
            self.teams.pop(team, None)
            self.members.pop(team, None)
            return httpx.Response(200)
        return httpx.Response(404)

    def _users(self, method, rest, request):
        if not rest and method == "POST":
            name = self._json(request)["name"]
            if name in self.users:
                return httpx.Response(422, json={"title": "user already exists"})
            self.users[name] = {"name": name}
            return httpx.Response(201)
        if len(rest) == 1 and method == "PUT":
            self.users.setdefault(rest[0], {}).update(self._json(request))
            return httpx.Response(204)
        if len(rest) == 1 and method == "DELETE":
            self.users.pop(rest[0], None)
            return httpx.Response(200)
        return httpx.Response(404)

    def _events(self, method, request):
        if method == "GET":
            q = request.url.params
            matches = [
                e for e in self.events
                if e["user"] == q.get("user")
                and e["team"] == q.get("team")
                and e["role"] == q.get("role")
                and e["start"] == int(q.get("start"))
                and e["end"] == int(q.get("end"))
            ]
            return httpx.Response(200, json=matches)
        self.events.append(self._json(request))
        return httpx.Response(201)


@pytest.fixture
def stub():
    return StubOncall()


@pytest.fixture
def sink():
    return MetricsSink()


@pytest.fixture
def session(stub):
    s = Session(BASE_URL, transport=httpx.MockTransport(stub))
    s.login()
    stub.reset_calls()
    yield s
    s.close()


@pytest.fixture
def client(session, sink):
    return OncallClient(session, timeout=2.0, metrics=sink)


@pytest.fixture
def reconciler(client):
    return Reconciler(client)


@pytest.fixture
def sre_config():
    return Configuration(teams=[
        Team(
            name="sre",
            scheduling_timezone="Europe/Moscow",
            email="sre@example.com",
            slack_channel="sre",
            users=[
                User(
                    name="alice",
                    full_name="Alice Liddell",
                    phone_number="+10000000001",
                    email="alice@example.com",
                    duty=[Duty(date="01/06/2024", role="primary")],
                ),
            ],
        ),
    ])
