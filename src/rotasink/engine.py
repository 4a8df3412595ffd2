"""Rotation engine: decides per write whether to rotate, then writes.

Single writer only. The engine holds no lock; callers must serialize
``write`` calls (typically by driving it from one background thread).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Callable

from rotasink.clock import advance_deadline, first_deadline
from rotasink.config import FilenameAppend, RotationConfig
from rotasink.errors import RotationError
from rotasink.file_adapter import FileAdapter
from rotasink.naming import append_date_suffix, append_index_suffix, time_bucket_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetainedFile:
    """A rotated file this engine created and will delete on overflow."""

    index: int
    path: Path


@dataclass
class FileEventNotifier:
    """Optional hooks around every open and close the engine performs.

    Bytes written through the handle in ``after_open`` / ``before_close``
    are not counted towards ``max_bytes``.
    """

    before_open: Callable[[Path], None] | None = None
    after_open: Callable[[Path, BinaryIO], None] | None = None
    before_close: Callable[[Path, BinaryIO], None] | None = None
    after_close: Callable[[Path], None] | None = None


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class RotationEngine:
    """Owns the live file handle, its size counter, deadlines and backups."""

    def __init__(
        self,
        config: RotationConfig,
        adapter: FileAdapter | None = None,
        notifier: FileEventNotifier | None = None,
        now: datetime | None = None,
    ) -> None:
        self.config = config
        self.adapter = adapter or FileAdapter()
        self.notifier = notifier or FileEventNotifier()
        self.retained: deque[RetainedFile] = deque()

        created = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        self.file_creation_time = created
        self.next_rotation_deadline: datetime | None = None
        if config.time_rotation:
            hour, minute = config.at_time
            self.next_rotation_deadline = first_deadline(
                created, config.when, config.interval, config.timezone, hour, minute
            )

        self._bucket: Path | None = None
        self._bucket_index = 0
        self._closed = False

        self.current_path = self._working_path(created)
        self.current_size = 0
        self._handle: BinaryIO | None = self._open(self.current_path, config.open_mode)
        if config.open_mode == "a" and config.max_bytes > 0:
            try:
                self.current_size = self.adapter.size_of(self.current_path)
            except RotationError:
                self._close_current()
                raise

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes, timestamp: datetime, flush: bool = False) -> None:
        """Write ``data`` stamped at ``timestamp``, rotating first if due.

        Raises ``OpenError`` / ``WriteError`` when the bytes could not be
        written. Rename and remove failures during rotation are logged only.
        """
        if self._closed:
            raise RotationError(f"Engine for {self.config.base_path} is closed")
        ts = _as_utc(timestamp)

        # At most one rotation per call: a time rotation skips the size check.
        rotated = self._time_rotation(ts)
        if not rotated and self.config.max_bytes > 0:
            self._size_rotation(len(data), ts)

        if self._handle is None:
            # A previous rotation failed to reopen the live file.
            self._handle = self._open(self.current_path, "a")
        self.adapter.write_all(self._handle, data)
        self.current_size += len(data)
        if flush:
            self.adapter.flush(self._handle, self.config.fsync)

    def flush(self) -> None:
        if self._handle is not None:
            self.adapter.flush(self._handle, self.config.fsync)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._close_current()

    def __enter__(self) -> RotationEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _time_rotation(self, ts: datetime) -> bool:
        deadline = self.next_rotation_deadline
        if deadline is None or ts < deadline:
            return False
        try:
            self._rotate(ts, for_time=True)
        finally:
            self.next_rotation_deadline = advance_deadline(
                deadline, self.config.when, self.config.interval, ts
            )
        return True

    def _size_rotation(self, size: int, ts: datetime) -> None:
        # An empty file is never rotated, even for a record larger than max_bytes.
        if self.current_size > 0 and self.current_size + size > self.config.max_bytes:
            self._rotate(ts, for_time=False)

    def _rotate(self, ts: datetime, for_time: bool) -> None:
        closed_path = self.current_path
        self._close_current()

        new_path = self._working_path(ts)
        index, target = self._rotation_target(closed_path, new_path, for_time)
        reason = "time" if for_time else "size"

        if target == closed_path:
            self.retained.append(RetainedFile(index, target))
            logger.info("Rotated %s (%s)", closed_path, reason)
        elif self.adapter.rename(closed_path, target):
            self.retained.append(RetainedFile(index, target))
            logger.info("Rotated %s -> %s (%s)", closed_path, target, reason)

        self.current_path = new_path
        self.current_size = 0
        self.file_creation_time = ts
        try:
            self._handle = self._open(new_path, "a")
        finally:
            self._evict()

    def _evict(self) -> None:
        backup_count = self.config.backup_count
        while backup_count > 0 and len(self.retained) > backup_count:
            oldest = self.retained.popleft()
            if self.adapter.remove(oldest.path):
                logger.debug("Evicted backup %s", oldest.path)

    def _rotation_target(
        self, closed_path: Path, new_path: Path, for_time: bool
    ) -> tuple[int, Path]:
        """Pick the name the just-closed file is renamed to.

        Size rotations number files within a bucket starting at 1; the
        bucket name for a time rotation is used as-is (index 0) unless that
        name is taken or would be reused by the new live file.
        """
        bucket = self._bucket_path(closed_path)
        if for_time:
            index = 0
        elif bucket == self._bucket:
            index = self._bucket_index + 1
        else:
            index = 1

        target = append_index_suffix(bucket, index)
        while target == new_path or (target != closed_path and self.adapter.exists(target)):
            index += 1
            target = append_index_suffix(bucket, index)

        if bucket != self._bucket or index > self._bucket_index:
            self._bucket, self._bucket_index = bucket, index
        return index, target

    def _bucket_path(self, closed_path: Path) -> Path:
        config = self.config
        if config.time_rotation:
            return time_bucket_name(
                config.base_path, self.file_creation_time, config.when, config.timezone
            )
        if config.filename_append != FilenameAppend.NONE:
            return closed_path
        return Path(config.base_path)

    def _working_path(self, created: datetime) -> Path:
        """Name of the live file for one created at ``created``."""
        append = self.config.filename_append
        if append == FilenameAppend.NONE:
            return Path(self.config.base_path)
        return append_date_suffix(
            self.config.base_path,
            created,
            include_time=append == FilenameAppend.DATETIME,
            tz=self.config.timezone,
        )

    def _open(self, path: Path, mode: str) -> BinaryIO:
        if self.notifier.before_open:
            self.notifier.before_open(path)
        handle = self.adapter.create(path, mode)
        if self.notifier.after_open:
            self.notifier.after_open(path, handle)
        return handle

    def _close_current(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        path = self.current_path
        if self.notifier.before_close:
            self.notifier.before_close(path, handle)
        try:
            self.adapter.flush(handle, self.config.fsync)
        finally:
            self.adapter.close(handle)
        if self.notifier.after_close:
            self.notifier.after_close(path)
