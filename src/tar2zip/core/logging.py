"""Centralized logging for tar2zip.

Four verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Detailed info
- DEBUG (3): Everything including internal state

Every emitted line is also published on the LogBus, so callers can observe
diagnostics without scraping the console.

Usage:
    from tar2zip.core.logging import get_logger, set_verbosity

    log = get_logger(__name__)
    set_verbosity(VerbosityLevel.VERBOSE)

    log.info("Converting archive.tar.gz...")
    log.warning("Skipping entry: <link> with unsupported type: 50")
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import IntEnum


class VerbosityLevel(IntEnum):
    """Verbosity levels for tar2zip."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


LEVEL_NAMES: dict[str, VerbosityLevel] = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


class LogBus:
    """Fan-out of log records to subscribers.

    Subscriber exceptions are written to stderr and never reach the logger.
    """

    def __init__(self) -> None:
        self._subs: list[Callable[[LogRecord], None]] = []

    def subscribe(self, cb: Callable[[LogRecord], None]) -> None:
        self._subs.append(cb)

    def unsubscribe(self, cb: Callable[[LogRecord], None]) -> None:
        with contextlib.suppress(ValueError):
            self._subs.remove(cb)

    def publish(self, record: LogRecord) -> None:
        for cb in list(self._subs):
            try:
                cb(record)
            except Exception:
                # Never call the logger from here (recursion).
                msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
                with contextlib.suppress(Exception):
                    sys.stderr.write(msg)

    def clear(self) -> None:
        self._subs.clear()

    @contextlib.contextmanager
    def collect(self, level_name: str | None = None) -> Iterator[list[LogRecord]]:
        """Collect published records (optionally of one level) while the block runs."""
        records: list[LogRecord] = []

        def _append(rec: LogRecord) -> None:
            if level_name is None or rec.level_name == level_name:
                records.append(rec)

        self.subscribe(_append)
        try:
            yield records
        finally:
            self.unsubscribe(_append)


_LOG_BUS = LogBus()

_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL

_USE_COLORS: bool = True


def get_log_bus() -> LogBus:
    return _LOG_BUS


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global console verbosity.

    Args:
        level: 0-3, a level name ("quiet", "normal", ...) or VerbosityLevel
    """
    global _VERBOSITY

    if isinstance(level, str):
        level = LEVEL_NAMES[level]
    elif isinstance(level, int):
        level = VerbosityLevel(level)

    _VERBOSITY = level


def get_verbosity() -> VerbosityLevel:
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    global _USE_COLORS
    _USE_COLORS = enabled


def _displayable(message: str) -> str:
    """Show surrogate-escaped bytes (undecodable file names) as \\xNN."""
    return message.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


class Tar2ZipLogger:
    """Console logger with verbosity support."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "VERBOSE": "\033[34m",  # Blue
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _format_message(self, level_name: str, message: str, stream) -> str:
        if _USE_COLORS and stream.isatty():
            color = self.COLORS.get(level_name, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level_name.lower()}]{reset} {message}"
        return f"[{level_name.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        # Errors are always shown.
        if level_name != "ERROR" and level > _VERBOSITY:
            return

        message = _displayable(message)
        plain = f"[{level_name.lower()}] {message}"
        _LOG_BUS.publish(LogRecord(level_name=level_name, plain=plain, logger_name=self.name))

        stream = sys.stderr if level_name == "ERROR" else sys.stdout
        print(self._format_message(level_name, message, stream), file=stream)

    def debug(self, message: str) -> None:
        """Log debug message (verbosity >= DEBUG)."""
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        """Log verbose message (verbosity >= VERBOSE)."""
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        """Log info message (verbosity >= NORMAL)."""
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        """Log warning message (verbosity >= QUIET)."""
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message (always shown)."""
        self._log(VerbosityLevel.QUIET, "ERROR", message)


_LOGGERS: dict[str, Tar2ZipLogger] = {}


def get_logger(name: str = __name__) -> Tar2ZipLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = Tar2ZipLogger(name)

    return _LOGGERS[name]
