"""Summary: Domain model dataclasses for InboxDesk.

Importance: Defines the core entities shared across services and storage.
Alternatives: Use Pydantic models or ORM classes directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Summary: Role of a user within an account.

    Importance: Closed set of roles that the authorization policy matches on.
    Alternatives: Free-form role strings checked ad hoc.
    """

    ADMINISTRATOR = "administrator"
    AGENT = "agent"


@dataclass(frozen=True)
class Account:
    """Summary: Isolation boundary for inboxes, users, and campaigns."""

    id: int
    name: str


@dataclass(frozen=True)
class User:
    """Summary: A person who can authenticate against the API.

    Importance: Actors are resolved to users before any inbox rule applies.
    Alternatives: Use an external identity provider only.
    """

    display_name: str
    email: str


@dataclass(frozen=True)
class Actor:
    """Summary: An authenticated user acting within one account.

    Importance: Carries the resolved role so policy checks stay side-effect free.
    Alternatives: Re-query the role on every check.
    """

    user_id: int
    account_id: int
    role: Role
    display_name: str = ""
    email: str = ""


@dataclass(frozen=True)
class WeeklyScheduleEntry:
    """Summary: Business hours for one day of the week.

    Importance: One entry per day drives open and closed status queries.
    Alternatives: Store free-form opening rules as cron expressions.
    """

    day_of_week: int
    open_hour: int | None = None
    open_minutes: int | None = None
    close_hour: int | None = None
    close_minutes: int | None = None
    closed_all_day: bool = False
    open_all_day: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "day_of_week": self.day_of_week,
            "open_hour": self.open_hour,
            "open_minutes": self.open_minutes,
            "close_hour": self.close_hour,
            "close_minutes": self.close_minutes,
            "closed_all_day": self.closed_all_day,
            "open_all_day": self.open_all_day,
        }


@dataclass(frozen=True)
class AgentBot:
    """Summary: Automated agent that can be bound to an inbox.

    Importance: Bots with no account are global and usable from any account.
    Alternatives: Copy bot definitions into each account.
    """

    id: int
    name: str
    description: str | None = None
    outgoing_url: str | None = None
    account_id: int | None = None


@dataclass(frozen=True)
class Inbox:
    """Summary: A configured channel endpoint within an account.

    Importance: Carries the scheduling and bot binding state managed by the services.
    Alternatives: Keep channel and schedule settings in separate aggregates.
    """

    id: int
    account_id: int
    name: str
    channel_type: str
    channel_config: dict[str, Any]
    enable_auto_assignment: bool = True
    avatar_key: str | None = None
    working_hours_enabled: bool = False
    out_of_office_message: str | None = None
    timezone: str = "UTC"
    agent_bot_id: int | None = None
    weekly_schedule: tuple[WeeklyScheduleEntry, ...] = field(default_factory=tuple)

    def schedule_for_day(self, day_of_week: int) -> WeeklyScheduleEntry | None:
        for entry in self.weekly_schedule:
            if entry.day_of_week == day_of_week:
                return entry
        return None


@dataclass(frozen=True)
class Campaign:
    """Summary: Outbound campaign attached to one inbox.

    Importance: Read-only here; listed per inbox for administrators.
    Alternatives: Expose campaigns only at the account level.
    """

    id: int
    display_id: int
    account_id: int
    inbox_id: int
    title: str
    message: str
    enabled: bool = True


@dataclass(frozen=True)
class AssignableAgent:
    """Summary: A user who may be assigned conversations in an inbox."""

    user_id: int
    display_name: str
    email: str
    role: Role
