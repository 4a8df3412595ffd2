"""``logging.Handler`` that writes formatted records through a RotationEngine."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from rotasink.config import RotationConfig
from rotasink.engine import RotationEngine
from rotasink.errors import RotationError


class RotatingFileLogHandler(logging.Handler):
    """Format each record and hand it to the engine, stamped with ``record.created``.

    ``logging.Handler.handle`` serializes calls on the handler lock, which
    gives the engine the single writer it expects.
    """

    terminator = "\n"

    def __init__(
        self,
        config: RotationConfig,
        encoding: str = "utf-8",
        engine: RotationEngine | None = None,
    ) -> None:
        super().__init__()
        self.encoding = encoding
        self.engine = engine or RotationEngine(config)
        self._emitting = False

    def emit(self, record: logging.LogRecord) -> None:
        # Records logged by the engine while writing would recurse into it.
        if self._emitting:
            return
        self._emitting = True
        try:
            data = (self.format(record) + self.terminator).encode(self.encoding)
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
            self.engine.write(data, ts, flush=True)
        except Exception:
            self.handleError(record)
        finally:
            self._emitting = False

    def flush(self) -> None:
        with self.lock:
            if self.engine.closed:
                return
            try:
                self.engine.flush()
            except RotationError:
                self._report("Flush")

    def close(self) -> None:
        with self.lock:
            try:
                self.engine.close()
            except RotationError:
                self._report("Close")
        super().close()

    def _report(self, action: str) -> None:
        # logging.shutdown only tolerates OSError and ValueError from handlers.
        path = self.engine.current_path
        self.handleError(logging.makeLogRecord({"msg": f"{action} of %s failed", "args": (path,)}))
