"""Rotation config: enums, defaults, validation, and file loading."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rotasink.errors import ConfigError
from rotasink.utils import deep_merge, load_json, load_yaml

logger = logging.getLogger(__name__)


class RotationMode(str, Enum):
    MINUTELY = "M"
    HOURLY = "H"
    DAILY = "daily"


class Timezone(str, Enum):
    LOCAL = "local"
    UTC = "utc"


class FilenameAppend(str, Enum):
    NONE = "none"
    DATE = "date"
    DATETIME = "datetime"


VALID_OPEN_MODES = {"a", "w"}

_AT_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")

DEFAULT_CONFIG: dict = {
    "base_path": "logs/app.log",
    "when": "daily",
    "interval": 1,
    "max_bytes": 0,
    "backup_count": 0,
    "timezone": "local",
    "at_time": "00:00",
    "filename_append": "none",
    "fsync": False,
    "open_mode": "a",
}


def parse_at_time(value: str) -> tuple[int, int]:
    """Parse an ``HH:MM`` string into ``(hour, minute)``."""
    match = _AT_TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid at_time {value!r}. Use 'HH:MM', e.g. '00:00'.")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid at_time {value!r}: hour must be <= 23 and minute <= 59.")
    return hour, minute


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_config(config: dict) -> list[str]:
    """Validate a config dict, returning list of error messages (empty if valid)."""
    errors: list[str] = []

    base_path = config.get("base_path")
    if not isinstance(base_path, (str, Path)) or not str(base_path).strip():
        errors.append("'base_path' must be a non-empty path")

    when = config.get("when")
    valid_modes = {m.value for m in RotationMode}
    if when is not None and when not in valid_modes:
        errors.append(f"Invalid 'when' {when!r}: expected one of {sorted(valid_modes)} or null")

    interval = config.get("interval")
    if not _is_count(interval) or interval == 0:
        errors.append(f"'interval' must be a positive integer, got {interval!r}")

    for key in ("max_bytes", "backup_count"):
        if not _is_count(config.get(key)):
            errors.append(f"'{key}' must be a non-negative integer, got {config.get(key)!r}")

    if config.get("timezone") not in {t.value for t in Timezone}:
        errors.append(f"Invalid 'timezone' {config.get('timezone')!r}: expected 'local' or 'utc'")

    at_time = config.get("at_time", "00:00")
    try:
        parsed = parse_at_time(at_time)
    except ValueError as exc:
        errors.append(str(exc))
    else:
        if parsed != (0, 0) and when != RotationMode.DAILY.value:
            errors.append("'at_time' can only be set when 'when' is 'daily'")

    append = config.get("filename_append")
    if append not in {f.value for f in FilenameAppend}:
        errors.append(f"Invalid 'filename_append' {append!r}: expected 'none', 'date' or 'datetime'")

    if not isinstance(config.get("fsync"), bool):
        errors.append("'fsync' must be true or false")

    if config.get("open_mode") not in VALID_OPEN_MODES:
        errors.append(f"Invalid 'open_mode' {config.get('open_mode')!r}: expected 'a' or 'w'")

    return errors


@dataclass(frozen=True)
class RotationConfig:
    """Immutable settings for one rotating file sink."""

    base_path: Path
    when: RotationMode | None = RotationMode.DAILY
    interval: int = 1
    max_bytes: int = 0
    backup_count: int = 0
    timezone: Timezone = Timezone.LOCAL
    at_time: tuple[int, int] = (0, 0)
    filename_append: FilenameAppend = FilenameAppend.NONE
    fsync: bool = False
    open_mode: str = "a"

    def __post_init__(self) -> None:
        errors = validate_config(self.as_dict())
        if errors:
            raise ConfigError(errors)

    @property
    def time_rotation(self) -> bool:
        return self.when is not None

    def as_dict(self) -> dict:
        """Plain dict in the same shape the config files use."""
        hour, minute = self.at_time
        when = self.when
        return {
            "base_path": str(self.base_path),
            "when": when.value if isinstance(when, RotationMode) else when,
            "interval": self.interval,
            "max_bytes": self.max_bytes,
            "backup_count": self.backup_count,
            "timezone": getattr(self.timezone, "value", self.timezone),
            "at_time": f"{hour:02d}:{minute:02d}",
            "filename_append": getattr(self.filename_append, "value", self.filename_append),
            "fsync": self.fsync,
            "open_mode": self.open_mode,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RotationConfig:
        """Build a config from a (partial) dict merged over the defaults."""
        merged = deep_merge(DEFAULT_CONFIG, data)
        errors = validate_config(merged)
        if errors:
            raise ConfigError(errors)
        when = merged["when"]
        return cls(
            base_path=Path(merged["base_path"]),
            when=RotationMode(when) if when is not None else None,
            interval=merged["interval"],
            max_bytes=merged["max_bytes"],
            backup_count=merged["backup_count"],
            timezone=Timezone(merged["timezone"]),
            at_time=parse_at_time(merged["at_time"]),
            filename_append=FilenameAppend(merged["filename_append"]),
            fsync=merged["fsync"],
            open_mode=merged["open_mode"],
        )


def load_config(path: Path) -> dict:
    """Load a JSON or YAML config file, merged with defaults."""
    if path.suffix.lower() in {".yaml", ".yml"}:
        user_config = load_yaml(path)
    else:
        user_config = load_json(path)
    if not user_config:
        logger.warning("Config file %s is empty or unreadable. Using defaults.", path)
    return deep_merge(DEFAULT_CONFIG, user_config)
