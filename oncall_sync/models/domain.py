# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO HTTP or I/O dependency.

The configuration tree (Configuration → Team → User → Duty) is frozen once
loaded. ``CallResult`` and ``TeamReconciliationResult`` are the envelopes the
client and the reconciliation engine hand back to their callers.
"""

from dataclasses import dataclass, field
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


# ── Configuration tree ──

class Duty(BaseModel):
    """One on-call day. An empty ``date`` is a placeholder and is skipped."""
    model_config = ConfigDict(frozen=True)

    date: str = Field(default="", description="Day in DD/MM/YYYY form")
    role: str = Field(default="", description="Rotation role, e.g. primary")

    @field_validator("date", "role", mode="before")
    @classmethod
    def _scalar_to_str(cls, value):
        # YAML gives None for "date:" and datetime.date for unquoted ISO dates
        if value is None:
            return ""
        if isinstance(value, (list, dict)):
            return value
        return str(value)


class User(BaseModel):
    """A team member and the days they are on duty."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Unique user name")
    full_name: str = ""
    phone_number: str = ""
    email: str = ""
    duties: list[Duty] = Field(default_factory=list, alias="duty")


class Team(BaseModel):
    """A team with its notification settings and members."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique team name")
    scheduling_timezone: str = ""
    email: str = ""
    slack_channel: str = ""
    users: list[User] = Field(default_factory=list)

    @property
    def alert_channel(self) -> str:
        return f"{self.slack_channel}-alert"


class Configuration(BaseModel):
    """Ordered teams to reconcile."""
    model_config = ConfigDict(frozen=True)

    teams: list[Team] = Field(default_factory=list)


# ── SLA checker configuration ──

class SLAMetric(BaseModel):
    """A Prometheus expression checked against its objective."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    alias: str = Field(..., min_length=1)
    metric: str = Field(..., min_length=1, description="PromQL expression")
    slo: float
    default_sli: float = Field(default=0.0, alias="default_value")
    comparison: Literal["gt", "lt"] = "gt"

    def is_met(self, value: float) -> bool:
        if self.comparison == "lt":
            return value < self.slo
        return value > self.slo


class SLAMetricsFile(BaseModel):
    metrics: list[SLAMetric] = Field(default_factory=list)


# ── Call results ──

@dataclass
class CallResult(Generic[T]):
    """Outcome of one remote call: payload plus timing and status metadata."""

    operation: str
    method: str
    path: str
    status_code: int
    elapsed: float
    data: Optional[T] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class TeamReconciliationResult:
    """Per-team outcome: the team create call and every user's calls."""

    team: Optional[CallResult] = None
    user_creates: dict[str, CallResult] = field(default_factory=dict)
    user_memberships: dict[str, CallResult] = field(default_factory=dict)
