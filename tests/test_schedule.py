"""Summary: Tests for working hours validation and open/closed queries.

Importance: Schedule rules decide when out-of-office replies go out.
Alternatives: Verify schedules only through the HTTP layer.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from inboxdesk.errors import ValidationError
from inboxdesk.models import Inbox, WeeklyScheduleEntry
from inboxdesk.schedule import (
    default_schedule,
    is_open_at,
    out_of_office_message_at,
    validate_schedule,
    validate_timezone,
)


def _entry(day: int, **overrides) -> dict:
    entry = {
        "day_of_week": day,
        "open_hour": 9,
        "open_minutes": 0,
        "close_hour": 17,
        "close_minutes": 0,
    }
    entry.update(overrides)
    return entry


def _inbox(schedule: tuple[WeeklyScheduleEntry, ...], enabled: bool = True, **overrides) -> Inbox:
    values = {
        "id": 1,
        "account_id": 1,
        "name": "Support",
        "channel_type": "api",
        "channel_config": {},
        "working_hours_enabled": enabled,
        "out_of_office_message": "We are away",
        "weekly_schedule": schedule,
    }
    values.update(overrides)
    return Inbox(**values)


def test_validate_schedule_accepts_business_hours() -> None:
    """Summary: Verify a standard 09:00-17:00 entry is valid.

    Importance: The common case must pass untouched.
    Alternatives: Only test rejections.
    """

    entries = validate_schedule([_entry(0)])
    assert entries == (
        WeeklyScheduleEntry(
            day_of_week=0, open_hour=9, open_minutes=0, close_hour=17, close_minutes=0
        ),
    )


def test_validate_schedule_orders_by_day() -> None:
    entries = validate_schedule([_entry(5), _entry(1), _entry(3)])
    assert [entry.day_of_week for entry in entries] == [1, 3, 5]


@pytest.mark.parametrize(
    "raw",
    [
        _entry(7),
        _entry(-1),
        _entry(1, open_hour=24),
        _entry(1, close_minutes=60),
        _entry(1, open_hour="9"),
        _entry(1, open_hour=True),
        _entry(1, open_hour=18),
        _entry(1, open_hour=22, close_hour=6),
        _entry(1, close_hour=None),
        {"open_hour": 9},
        {"day_of_week": 1, "lunch_break": True},
        _entry(1, closed_all_day="false"),
        _entry(1, open_all_day=1),
        {"day_of_week": 1, "closed_all_day": None},
    ],
)
def test_validate_schedule_rejects_bad_entries(raw: dict) -> None:
    """Summary: Verify out-of-range, overnight, incomplete, unknown, and non-boolean flag entries fail.

    Importance: Invalid schedules must never reach storage.
    Alternatives: Clamp values into range.
    """

    with pytest.raises(ValidationError):
        validate_schedule([_entry(0), raw])


def test_validate_schedule_rejects_duplicate_days() -> None:
    with pytest.raises(ValidationError, match="Duplicate"):
        validate_schedule([_entry(2), _entry(2, open_hour=10)])


def test_validate_schedule_all_day_flags() -> None:
    """Summary: Verify all-day entries need no times but cannot combine both flags."""

    entries = validate_schedule(
        [
            {"day_of_week": 0, "closed_all_day": True},
            {"day_of_week": 6, "open_all_day": True},
        ]
    )
    assert entries[0].closed_all_day
    assert entries[1].open_all_day
    with pytest.raises(ValidationError):
        validate_schedule([{"day_of_week": 1, "closed_all_day": True, "open_all_day": True}])


def test_default_schedule_covers_week() -> None:
    entries = default_schedule()
    assert [entry.day_of_week for entry in entries] == list(range(7))
    assert entries[0].closed_all_day and entries[6].closed_all_day
    assert entries[1].open_hour == 9 and entries[1].close_hour == 17


def test_is_open_when_schedule_disabled() -> None:
    """Summary: Verify a disabled schedule means always open.

    Importance: Stored entries stay inert until working hours are enabled.
    Alternatives: Evaluate entries regardless of the flag.
    """

    inbox = _inbox((), enabled=False)
    assert is_open_at(inbox, datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc))
    assert out_of_office_message_at(inbox, datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc)) is None


def test_is_open_at_respects_window() -> None:
    """Summary: Verify open/closed around the edges of a window.

    Importance: Opening time is inclusive and closing time exclusive.
    Alternatives: Treat both ends as inclusive.
    """

    inbox = _inbox(validate_schedule([_entry(1)]))
    # 2026-10-19 is a Monday, day 1 when counting from Sunday.
    assert is_open_at(inbox, datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc))
    assert is_open_at(inbox, datetime(2026, 10, 19, 16, 59, tzinfo=timezone.utc))
    assert not is_open_at(inbox, datetime(2026, 10, 19, 8, 59, tzinfo=timezone.utc))
    assert not is_open_at(inbox, datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc))
    assert not is_open_at(inbox, datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc))


def test_is_open_at_treats_naive_timestamps_as_utc() -> None:
    inbox = _inbox(validate_schedule([_entry(1)]))
    assert is_open_at(inbox, datetime(2026, 10, 19, 10, 0))


def test_is_open_at_uses_inbox_timezone() -> None:
    inbox = _inbox(validate_schedule([_entry(1)]), timezone="America/New_York")
    assert is_open_at(inbox, datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc))
    assert not is_open_at(inbox, datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc))


def test_all_day_entries() -> None:
    inbox = _inbox(
        validate_schedule(
            [{"day_of_week": 0, "open_all_day": True}, {"day_of_week": 1, "closed_all_day": True}]
        )
    )
    assert is_open_at(inbox, datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc))
    assert not is_open_at(inbox, datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))


def test_out_of_office_message_only_when_closed() -> None:
    inbox = _inbox(validate_schedule([_entry(1)]))
    assert out_of_office_message_at(inbox, datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)) is None
    assert (
        out_of_office_message_at(inbox, datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc))
        == "We are away"
    )


def test_validate_timezone() -> None:
    assert validate_timezone("Europe/Berlin") == "Europe/Berlin"
    with pytest.raises(ValidationError):
        validate_timezone("Mars/Olympus_Mons")
    with pytest.raises(ValidationError):
        validate_timezone("")


def test_validate_schedule_checks_entry_objects() -> None:
    entry = WeeklyScheduleEntry(day_of_week=2, closed_all_day="yes")
    with pytest.raises(ValidationError, match="closed_all_day must be a boolean"):
        validate_schedule([entry])
