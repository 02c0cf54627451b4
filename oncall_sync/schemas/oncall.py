# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request bodies sent to the on-call API.
These are Pydantic models used ONLY at the client (HTTP) boundary; unset
fields are dropped from the JSON payload.
"""

from typing import Any, Optional

from pydantic import BaseModel

from oncall_sync.models.domain import Team, User


class _Payload(BaseModel):
    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ── Team Schemas ──

class TeamCreateRequest(_Payload):
    name: str
    email: Optional[str] = None
    scheduling_timezone: Optional[str] = None
    slack_channel: Optional[str] = None
    slack_channel_notifications: Optional[str] = None

    @classmethod
    def from_team(cls, team: Team) -> "TeamCreateRequest":
        return cls(
            name=team.name,
            email=team.email or None,
            scheduling_timezone=team.scheduling_timezone or None,
            slack_channel=team.slack_channel or None,
            slack_channel_notifications=team.alert_channel if team.slack_channel else None,
        )


class NameRequest(_Payload):
    """Body of the user-create and add-member calls."""
    name: str


# ── User Schemas ──

class Contacts(_Payload):
    call: Optional[str] = None
    email: Optional[str] = None


class UserUpdateRequest(_Payload):
    name: str
    full_name: Optional[str] = None
    contacts: Contacts = Contacts()

    @classmethod
    def from_user(cls, user: User) -> "UserUpdateRequest":
        return cls(
            name=user.name,
            full_name=user.full_name or None,
            contacts=Contacts(
                call=user.phone_number or None,
                email=user.email or None,
            ),
        )


# ── Event Schemas ──

class EventCreateRequest(_Payload):
    user: str
    team: str
    role: str
    start: int
    end: int
