"""Rotation deadline arithmetic - pure functions, no clock reads.

Every function takes the current instant as an argument. Calendar fields
are manipulated in the selected timezone (platform local time, or UTC) and
the result is returned as an aware UTC ``datetime``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from rotasink.config import RotationMode, Timezone

_DAY = timedelta(hours=24)


def to_calendar(ts: datetime, tz: Timezone = Timezone.LOCAL) -> datetime:
    """Broken-down view of ``ts`` in the selected timezone.

    Naive datetimes are taken to be UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    if tz == Timezone.UTC:
        return ts.astimezone(timezone.utc)
    return ts.astimezone()


def from_wall_clock(wall: datetime, tz: Timezone = Timezone.LOCAL) -> datetime:
    """Absolute UTC instant of a naive wall-clock time in the selected timezone.

    The local UTC offset is resolved at ``wall`` itself, not carried over
    from whatever instant the fields were derived from.
    """
    if tz == Timezone.UTC:
        return wall.replace(tzinfo=timezone.utc)
    return wall.astimezone().astimezone(timezone.utc)


def period(when: RotationMode, interval: int = 1) -> timedelta:
    """Distance between two consecutive deadlines."""
    if when == RotationMode.MINUTELY:
        return timedelta(minutes=interval)
    if when == RotationMode.HOURLY:
        return timedelta(hours=interval)
    if when == RotationMode.DAILY:
        return _DAY
    raise ValueError(f"Unknown rotation mode: {when!r}")


def first_deadline(
    now: datetime,
    when: RotationMode,
    interval: int = 1,
    tz: Timezone = Timezone.LOCAL,
    at_hour: int = 0,
    at_minute: int = 0,
) -> datetime:
    """First rotation deadline strictly after ``now``.

    Minutely and hourly deadlines land on the next clock boundary (seconds,
    and for hourly also minutes, zeroed); ``interval`` only spaces the
    deadlines after it. Daily deadlines land on the next local
    ``at_hour:at_minute``, tomorrow if today's has already passed.
    """
    cal = to_calendar(now, tz)

    if when == RotationMode.MINUTELY:
        boundary = cal.replace(second=0, microsecond=0)
        return (boundary + period(when)).astimezone(timezone.utc)
    if when == RotationMode.HOURLY:
        boundary = cal.replace(minute=0, second=0, microsecond=0)
        return (boundary + period(when)).astimezone(timezone.utc)
    if when != RotationMode.DAILY:
        raise ValueError(f"Unknown rotation mode: {when!r}")

    # Roll the date on the wall clock so a DST change in between keeps at_time.
    wall = cal.replace(tzinfo=None)
    target = wall.replace(hour=at_hour, minute=at_minute, second=0, microsecond=0)
    if target <= wall:
        target += timedelta(days=1)
    deadline = from_wall_clock(target, tz)
    # A fall-back hour can map a later wall time onto an earlier instant.
    while deadline <= to_calendar(now, Timezone.UTC):
        target += timedelta(days=1)
        deadline = from_wall_clock(target, tz)
    return deadline


def next_deadline(previous: datetime, when: RotationMode, interval: int = 1) -> datetime:
    """Deadline following ``previous``; cadence is kept regardless of write times."""
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    return (previous + period(when, interval)).astimezone(timezone.utc)


def advance_deadline(
    deadline: datetime, when: RotationMode, interval: int, now: datetime
) -> datetime:
    """Step ``deadline`` by whole periods until it is strictly after ``now``.

    Equivalent to calling ``next_deadline`` repeatedly, computed in one step
    so a long idle gap does not loop once per missed interval.
    """
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if deadline > now:
        return deadline.astimezone(timezone.utc)
    step = period(when, interval)
    missed = (now - deadline) // step + 1
    return (deadline + missed * step).astimezone(timezone.utc)
