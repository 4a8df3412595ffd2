"""Rotated file names.

Grammar, shared with any tooling that globs rotated files:

    <stem>_<YYYY>-<MM>-<DD><ext>
    <stem>_<YYYY>-<MM>-<DD>_<HH>-<MM>-<SS><ext>
    <stem>.<N><ext>            (N >= 1)
    <stem><ext>                the live file
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from rotasink.clock import to_calendar
from rotasink.config import RotationMode, Timezone


def split_stem_extension(path: str | Path) -> tuple[str, str]:
    """Split into (stem with directory, extension including the dot).

    Only the final dotted suffix of the last path component counts, and a
    leading dot (``.bashrc``) is not an extension.
    """
    return os.path.splitext(os.fspath(path))


def append_date_suffix(
    path: str | Path,
    timestamp: datetime,
    include_time: bool = False,
    tz: Timezone = Timezone.LOCAL,
    zero_minutes: bool = False,
    zero_seconds: bool = False,
) -> Path:
    """``logs/app.log`` -> ``logs/app_2024-03-07.log`` (or ``..._HH-MM-SS.log``)."""
    cal = to_calendar(timestamp, tz)
    minute = 0 if zero_minutes else cal.minute
    second = 0 if zero_seconds else cal.second

    stem, ext = split_stem_extension(path)
    stamp = f"{cal.year:04d}-{cal.month:02d}-{cal.day:02d}"
    if include_time:
        stamp += f"_{cal.hour:02d}-{minute:02d}-{second:02d}"
    return Path(f"{stem}_{stamp}{ext}")


def append_index_suffix(path: str | Path, index: int) -> Path:
    """``app.log`` -> ``app.3.log``; index 0 leaves the path untouched.

    A ``Path`` argument comes back as the same object for index 0. A ``str``
    is wrapped in ``Path``, which drops redundant ``./`` segments.
    """
    if index < 0:
        raise ValueError(f"Rotation index must be >= 0, got {index}")
    if index == 0:
        return path if isinstance(path, Path) else Path(path)
    stem, ext = split_stem_extension(path)
    return Path(f"{stem}.{index}{ext}")


def time_bucket_name(path: str | Path, timestamp: datetime, when: RotationMode, tz: Timezone) -> Path:
    """Date-stamped name of the time bucket ``timestamp`` falls in.

    Daily buckets carry the date only. Minutely buckets zero the seconds and
    hourly buckets zero minutes and seconds.
    """
    return append_date_suffix(
        path,
        timestamp,
        include_time=when != RotationMode.DAILY,
        tz=tz,
        zero_minutes=when == RotationMode.HOURLY,
        zero_seconds=when in (RotationMode.MINUTELY, RotationMode.HOURLY),
    )
