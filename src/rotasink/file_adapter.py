"""Host filesystem access for the rotation engine.

Open, write and stat failures are raised as typed errors. Rename and remove
are best-effort: they return ``False`` and record a ``CleanupError`` instead
of raising.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from pathlib import Path
from typing import BinaryIO

from rotasink.errors import CleanupError, OpenError, StatError, WriteError

logger = logging.getLogger(__name__)

MAX_DIAGNOSTICS = 100


class FileAdapter:
    """Thin wrapper over open/write/stat/rename/unlink."""

    def __init__(self) -> None:
        self.diagnostics: deque[CleanupError] = deque(maxlen=MAX_DIAGNOSTICS)

    def create(self, path: Path, mode: str = "a") -> BinaryIO:
        """Open ``path`` for binary writing, creating parent directories."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return open(path, mode + "b")
        except OSError as exc:
            logger.error("Failed to open %s (mode %r): %s", path, mode, exc)
            raise OpenError(str(path), mode, exc.errno, exc.strerror or str(exc)) from exc

    def write_all(self, handle: BinaryIO, data: bytes) -> None:
        """Write every byte of ``data``; a short write is a failure."""
        try:
            written = handle.write(data)
        except OSError as exc:
            logger.error("Write to %s failed: %s", handle.name, exc)
            raise WriteError(exc.errno, str(handle.name), exc.strerror or str(exc)) from exc
        if written is not None and written < len(data):
            logger.error("Short write to %s: %d of %d bytes", handle.name, written, len(data))
            raise WriteError(None, str(handle.name), f"short write: {written} of {len(data)} bytes")

    def flush(self, handle: BinaryIO, fsync: bool = False) -> None:
        """Flush buffers; also ask the OS to persist to disk when ``fsync``."""
        try:
            handle.flush()
            if fsync:
                os.fsync(handle.fileno())
        except OSError as exc:
            logger.error("Flush of %s failed: %s", handle.name, exc)
            raise WriteError(exc.errno, str(handle.name), exc.strerror or str(exc)) from exc

    def close(self, handle: BinaryIO) -> None:
        try:
            handle.close()
        except OSError as exc:
            logger.error("Close of %s failed: %s", handle.name, exc)
            raise WriteError(exc.errno, str(handle.name), exc.strerror or str(exc)) from exc

    def size_of(self, path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as exc:
            raise StatError(str(path), exc.errno, exc.strerror or str(exc)) from exc

    def exists(self, path: Path) -> bool:
        return path.exists()

    def remove(self, path: Path) -> bool:
        """Delete ``path``. A file that is already gone counts as removed."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self._record("remove", path, exc)
            return False
        return True

    def rename(self, src: Path, dst: Path) -> bool:
        try:
            src.rename(dst)
        except OSError as exc:
            self._record(f"rename to {dst}", src, exc)
            return False
        return True

    def _record(self, operation: str, path: Path, exc: OSError) -> None:
        diagnostic = CleanupError(operation, str(path), exc.errno, exc.strerror or str(exc))
        self.diagnostics.append(diagnostic)
        logger.warning("Cleanup failed, continuing: %s", diagnostic)
