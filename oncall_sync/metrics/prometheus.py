# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — one explicitly constructed sink per process.

The sink owns its own ``CollectorRegistry``; it is built once at process
start, handed to the client, the workers and the HTTP layer, and lives until
the process exits.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from oncall_sync.models.domain import CallResult

KNOWN_SEGMENTS: set[str] = {
    "api", "v0", "teams", "users", "events", "summary", "login",
}

PROBE_SCENARIOS: tuple[str, ...] = ("create_team", "create_user", "add_user_to_team")


def normalize_path(path: str) -> str:
    """Collapse team/user names in a request path to ``{param}``."""
    parts = path.strip("/").split("/")
    if parts == [""]:
        return path or "/"
    return "/" + "/".join(p if p in KNOWN_SEGMENTS else "{param}" for p in parts)


class MetricsSink:
    """Every metric the exporter, the prober and the client report into."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        # ── Client metrics (one observation per remote call) ──
        self.request_count = Counter(
            "oncall_requests_total",
            "Total HTTP requests sent to the on-call API",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.request_latency = Histogram(
            "oncall_request_duration_seconds",
            "On-call API request latency in seconds",
            ["method", "path", "status"],
            registry=self.registry,
        )

        # ── Roster metrics ──
        self.available_users = Gauge(
            "oncall_avail_users",
            "The number of current available team members that are in rotation "
            "and can be contacted for work",
            ["role", "team"],
            registry=self.registry,
        )

        # ── Prober scenarios ──
        self.scenario_total: dict[str, Counter] = {}
        self.scenario_success: dict[str, Counter] = {}
        self.scenario_duration: dict[str, Gauge] = {}
        for scenario in PROBE_SCENARIOS:
            label = scenario.replace("_", " ")
            self.scenario_total[scenario] = Counter(
                f"prober_{scenario}_scenario_total",
                f"Total count of runs of the {label} scenario to oncall API",
                registry=self.registry,
            )
            self.scenario_success[scenario] = Counter(
                f"prober_{scenario}_scenario_success_total",
                f"Total count of successful runs of the {label} scenario to oncall API",
                registry=self.registry,
            )
            self.scenario_duration[scenario] = Gauge(
                f"prober_{scenario}_scenario_duration_seconds",
                f"Duration of the last successful {label} scenario run",
                registry=self.registry,
            )

    # ── Client ──

    def observe_call(self, result: CallResult) -> None:
        labels = {
            "method": result.method,
            "path": normalize_path(result.path),
            "status": str(result.status_code),
        }
        self.request_count.labels(**labels).inc()
        self.request_latency.labels(**labels).observe(result.elapsed)

    # ── Roster ──

    def set_available_users(self, team: str, role: str, count: int) -> None:
        self.available_users.labels(role=role, team=team).set(count)

    def clear_available_users(self) -> None:
        self.available_users.clear()

    # ── Prober ──

    def record_scenario(self, scenario: str, result: CallResult | None) -> None:
        """Count one scenario run; success needs a 2xx result."""
        self.scenario_total[scenario].inc()
        if result is None or not result.ok:
            return
        self.scenario_success[scenario].inc()
        self.scenario_duration[scenario].set(result.elapsed)

    def render(self) -> bytes:
        return generate_latest(self.registry)
