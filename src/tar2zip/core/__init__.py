"""tar2zip core: configuration, errors and logging."""

from tar2zip.core.config import ConfigResolver, ConfigSource
from tar2zip.core.errors import (
    ConfigError,
    ConvertError,
    CopyError,
    DecompressionInitError,
    EntryCreateError,
    HeaderError,
    OpenError,
    StaleEntryError,
    Tar2ZipError,
)
from tar2zip.core.logging import (
    LogBus,
    LogRecord,
    VerbosityLevel,
    get_log_bus,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "ConfigSource",
    # Errors
    "Tar2ZipError",
    "ConfigError",
    "ConvertError",
    "OpenError",
    "DecompressionInitError",
    "HeaderError",
    "EntryCreateError",
    "CopyError",
    "StaleEntryError",
    # Logging
    "LogBus",
    "LogRecord",
    "VerbosityLevel",
    "get_log_bus",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_verbosity",
]
