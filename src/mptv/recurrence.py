# recurrence.py
"""
Conversion between the host's recurrence model (an explicit set of days plus
"any time" / "any channel" flags) and the backend's closed set of schedule
types.

The mapping is lossy. Decoding never fails, but it cannot recover a day set
the backend does not store: "every time on this channel" comes back with no
days, and the two single-weekday patterns come back with the weekday of the
schedule's start. Encoding picks the most specific schedule type and raises
UnsupportedRecurrenceError for combinations the backend cannot hold.
"""

from datetime import datetime
from typing import FrozenSet

from mptv.errors import UnsupportedRecurrenceError
from mptv.models import DayOfWeek, Recurrence, ScheduleType

ALL_DAYS: FrozenSet[DayOfWeek] = frozenset(DayOfWeek)
WORKING_DAYS: FrozenSet[DayOfWeek] = frozenset({
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
})
WEEKEND_DAYS: FrozenSet[DayOfWeek] = frozenset({DayOfWeek.SATURDAY, DayOfWeek.SUNDAY})

DESCRIPTIONS = {
    ScheduleType.ONCE: "Once",
    ScheduleType.DAILY: "Daily",
    ScheduleType.WEEKLY: "Weekly",
    ScheduleType.EVERY_TIME_ON_THIS_CHANNEL: "Every time on this channel",
    ScheduleType.EVERY_TIME_ON_EVERY_CHANNEL: "Every time on every channel",
    ScheduleType.WEEKENDS: "Weekends",
    ScheduleType.WORKING_DAYS: "Working days",
    ScheduleType.WEEKLY_EVERY_TIME_ON_THIS_CHANNEL: "Weekly, every time on this channel",
}


def describe(schedule_type: ScheduleType) -> str:
    """Human readable label for a schedule type"""
    return DESCRIPTIONS[ScheduleType(schedule_type)]


def decode(schedule_type: ScheduleType, start: datetime) -> Recurrence:
    """Expands a backend schedule type into a Recurrence.

    Only the weekday of ``start`` influences the day set, and only for the
    two weekly patterns.
    """
    schedule_type = ScheduleType(schedule_type)
    weekday = frozenset({DayOfWeek.of(start)})

    any_time = schedule_type in (
        ScheduleType.EVERY_TIME_ON_THIS_CHANNEL,
        ScheduleType.EVERY_TIME_ON_EVERY_CHANNEL,
        ScheduleType.WEEKLY_EVERY_TIME_ON_THIS_CHANNEL,
    )
    any_channel = schedule_type == ScheduleType.EVERY_TIME_ON_EVERY_CHANNEL

    if schedule_type in (ScheduleType.WEEKLY, ScheduleType.WEEKLY_EVERY_TIME_ON_THIS_CHANNEL):
        days = weekday
    elif schedule_type == ScheduleType.DAILY:
        days = ALL_DAYS
    elif schedule_type == ScheduleType.WORKING_DAYS:
        days = WORKING_DAYS
    elif schedule_type == ScheduleType.WEEKENDS:
        days = WEEKEND_DAYS
    else:
        days = frozenset()

    return Recurrence(
        days=days,
        any_time=any_time,
        any_channel=any_channel,
        start_time=start.time(),
        start_date=start.date(),
    )


def encode(recurrence: Recurrence) -> ScheduleType:
    """Picks the most specific schedule type for a Recurrence.

    Raises:
        UnsupportedRecurrenceError: for "any channel" without "any time", and
            for day sets other than every day, working days, weekends, a
            single day or no day at all.
    """
    days = frozenset(recurrence.days)

    if recurrence.any_channel and not recurrence.any_time:
        raise UnsupportedRecurrenceError(
            "Recording on any channel is only supported together with any time"
        )

    if recurrence.any_channel:
        return ScheduleType.EVERY_TIME_ON_EVERY_CHANNEL
    if recurrence.any_time and len(days) == 1:
        return ScheduleType.WEEKLY_EVERY_TIME_ON_THIS_CHANNEL
    if recurrence.any_time:
        return ScheduleType.EVERY_TIME_ON_THIS_CHANNEL
    if days == ALL_DAYS:
        return ScheduleType.DAILY
    if days == WORKING_DAYS:
        return ScheduleType.WORKING_DAYS
    if days == WEEKEND_DAYS:
        return ScheduleType.WEEKENDS
    if len(days) == 1:
        return ScheduleType.WEEKLY
    if not days:
        return ScheduleType.ONCE

    names = ", ".join(d.name.title() for d in sorted(days))
    raise UnsupportedRecurrenceError(f"The backend cannot record on this combination of days: {names}")
