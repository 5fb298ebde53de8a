"""Summary: Weekly working hours validation and open/closed queries.

Importance: Keeps schedule rules in one place for the API, CLI, and outbound channels.
Alternatives: Evaluate opening hours inside each channel integration.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from inboxdesk.errors import ValidationError
from inboxdesk.models import Inbox, WeeklyScheduleEntry

_TIME_FIELDS = ("open_hour", "open_minutes", "close_hour", "close_minutes")
_ENTRY_FIELDS = frozenset({"day_of_week", *_TIME_FIELDS, "closed_all_day", "open_all_day"})


def default_schedule() -> tuple[WeeklyScheduleEntry, ...]:
    """Summary: Build the schedule a new inbox starts with.

    Importance: Gives inboxes sensible hours before an administrator edits them.
    Alternatives: Start with an empty schedule and treat it as always closed.
    """

    entries = []
    for day in range(7):
        if day in (0, 6):
            entries.append(WeeklyScheduleEntry(day_of_week=day, closed_all_day=True))
        else:
            entries.append(
                WeeklyScheduleEntry(
                    day_of_week=day, open_hour=9, open_minutes=0, close_hour=17, close_minutes=0
                )
            )
    return tuple(entries)


def validate_schedule(
    entries: Iterable[WeeklyScheduleEntry | dict[str, Any]],
) -> tuple[WeeklyScheduleEntry, ...]:
    """Summary: Validate a full set of schedule entries.

    Importance: Rejects the whole set on the first problem so a replace is all-or-nothing.
    Alternatives: Upsert each day independently and skip invalid ones.
    """

    validated: list[WeeklyScheduleEntry] = []
    seen_days: set[int] = set()
    for raw in entries:
        entry = _coerce_entry(raw)
        _validate_entry(entry)
        if entry.day_of_week in seen_days:
            raise ValidationError(f"Duplicate schedule entry for day {entry.day_of_week}")
        seen_days.add(entry.day_of_week)
        validated.append(entry)
    return tuple(sorted(validated, key=lambda item: item.day_of_week))


def validate_timezone(name: str) -> str:
    """Summary: Ensure a timezone name resolves to an IANA zone."""

    if not isinstance(name, str) or not name:
        raise ValidationError("Timezone must be a non-empty string")
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown timezone: {name}") from exc
    return name


def is_open_at(inbox: Inbox, timestamp: datetime) -> bool:
    """Summary: Report whether an inbox is within business hours at a moment.

    Importance: Seam used by notifiers and channels to decide on out-of-office replies.
    Alternatives: Precompute open windows in a background job.
    """

    if not inbox.working_hours_enabled:
        return True
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    local = timestamp.astimezone(ZoneInfo(inbox.timezone))
    # datetime.weekday() counts from Monday; schedule days count from Sunday.
    day_of_week = (local.weekday() + 1) % 7
    entry = inbox.schedule_for_day(day_of_week)
    if entry is None or entry.closed_all_day:
        return False
    if entry.open_all_day:
        return True
    minute_of_day = local.hour * 60 + local.minute
    opens = entry.open_hour * 60 + entry.open_minutes
    closes = entry.close_hour * 60 + entry.close_minutes
    return opens <= minute_of_day < closes


def out_of_office_message_at(inbox: Inbox, timestamp: datetime) -> str | None:
    """Summary: Return the out-of-office message when it applies at a moment."""

    if not inbox.working_hours_enabled or not inbox.out_of_office_message:
        return None
    if is_open_at(inbox, timestamp):
        return None
    return inbox.out_of_office_message


def _coerce_entry(raw: WeeklyScheduleEntry | dict[str, Any]) -> WeeklyScheduleEntry:
    if isinstance(raw, WeeklyScheduleEntry):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError("Schedule entries must be objects")
    unknown = set(raw) - _ENTRY_FIELDS
    if unknown:
        raise ValidationError(f"Unknown schedule fields: {', '.join(sorted(unknown))}")
    if "day_of_week" not in raw:
        raise ValidationError("Schedule entry is missing day_of_week")
    return WeeklyScheduleEntry(
        day_of_week=raw["day_of_week"],
        open_hour=raw.get("open_hour"),
        open_minutes=raw.get("open_minutes"),
        close_hour=raw.get("close_hour"),
        close_minutes=raw.get("close_minutes"),
        closed_all_day=raw.get("closed_all_day", False),
        open_all_day=raw.get("open_all_day", False),
    )


def _validate_entry(entry: WeeklyScheduleEntry) -> None:
    _require_range("day_of_week", entry.day_of_week, 0, 6)
    _require_flag("closed_all_day", entry.closed_all_day)
    _require_flag("open_all_day", entry.open_all_day)
    if entry.closed_all_day and entry.open_all_day:
        raise ValidationError(
            f"Day {entry.day_of_week} cannot be both closed and open all day"
        )
    for name in _TIME_FIELDS:
        value = getattr(entry, name)
        if value is None:
            continue
        upper = 23 if name.endswith("hour") else 59
        _require_range(name, value, 0, upper)
    if entry.closed_all_day or entry.open_all_day:
        return
    missing = [name for name in _TIME_FIELDS if getattr(entry, name) is None]
    if missing:
        raise ValidationError(
            f"Day {entry.day_of_week} is missing {', '.join(missing)}"
        )
    opens = entry.open_hour * 60 + entry.open_minutes
    closes = entry.close_hour * 60 + entry.close_minutes
    if opens >= closes:
        raise ValidationError(
            f"Day {entry.day_of_week} must open before it closes"
        )


def _require_range(name: str, value: Any, lower: int, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if not lower <= value <= upper:
        raise ValidationError(f"{name} must be between {lower} and {upper}, got {value}")


def _require_flag(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean")
