"""Typed failures for file I/O and configuration."""

from __future__ import annotations


class RotationError(Exception):
    """Base class for every failure the rotation core raises."""


class OpenError(RotationError):
    def __init__(self, path: str, mode: str, errno: int | None = None, message: str = "") -> None:
        self.path = path
        self.mode = mode
        self.errno = errno
        super().__init__(
            f"Cannot open {path!r} with mode {mode!r} (errno {errno}): {message}"
        )


class WriteError(RotationError):
    def __init__(self, errno: int | None = None, path: str = "", message: str = "") -> None:
        self.errno = errno
        self.path = path
        super().__init__(f"Write to {path!r} failed (errno {errno}): {message}")


class StatError(RotationError):
    def __init__(self, path: str, errno: int | None = None, message: str = "") -> None:
        self.path = path
        self.errno = errno
        super().__init__(f"Cannot stat {path!r} (errno {errno}): {message}")


class CleanupError(RotationError):
    """Diagnostic record for a failed rename or remove.

    Never raised by the adapter: instances are kept in
    ``FileAdapter.diagnostics`` so callers can inspect what went wrong.
    """

    def __init__(self, operation: str, path: str, errno: int | None = None, message: str = "") -> None:
        self.operation = operation
        self.path = path
        self.errno = errno
        self.message = message
        super().__init__(f"{operation} {path!r} failed (errno {errno}): {message}")


class ConfigError(ValueError):
    """Raised when a rotation config does not validate."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))
