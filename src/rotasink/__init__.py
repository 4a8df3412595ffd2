"""rotasink - time and size based rotating output files for log sinks."""

from rotasink.config import FilenameAppend, RotationConfig, RotationMode, Timezone
from rotasink.engine import FileEventNotifier, RetainedFile, RotationEngine
from rotasink.errors import (
    CleanupError,
    ConfigError,
    OpenError,
    RotationError,
    StatError,
    WriteError,
)
from rotasink.file_adapter import FileAdapter
from rotasink.handler import RotatingFileLogHandler

__version__ = "0.1.0"

__all__ = [
    "CleanupError",
    "ConfigError",
    "FileAdapter",
    "FileEventNotifier",
    "FilenameAppend",
    "OpenError",
    "RetainedFile",
    "RotatingFileLogHandler",
    "RotationConfig",
    "RotationEngine",
    "RotationError",
    "RotationMode",
    "StatError",
    "Timezone",
    "WriteError",
    "__version__",
]
