"""Error handling with friendly messages."""

from __future__ import annotations


class Tar2ZipError(Exception):
    """Base exception for all tar2zip errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(Tar2ZipError):
    """Configuration error."""

    pass


class ConvertError(Tar2ZipError):
    """Conversion error."""

    pass


class OpenError(ConvertError):
    """Input cannot be opened or output cannot be created."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(
            f"Error opening <{path}>: {reason}",
            "Check that the path exists and is readable/writable",
        )


class DecompressionInitError(ConvertError):
    """Compressed stream header is malformed."""

    pass


class HeaderError(ConvertError):
    """Tar entry header is malformed; the rest of the stream is unusable."""

    pass


class EntryCreateError(ConvertError):
    """Zip entry header could not be created."""

    pass


class CopyError(ConvertError):
    """Entry content could not be copied."""

    pass


class StaleEntryError(ConvertError):
    """Entry content was read after the iterator moved past it."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Content of <{name}> is no longer readable",
            "Read each entry before advancing to the next one",
        )
