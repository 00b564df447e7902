"""Conversion types for tar2zip.

Enums and value objects shared by the detector, the decompression selector,
the tar entry iterator and the zip transcoder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class CompressionKind(StrEnum):
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"


class ContainerKind(StrEnum):
    TAR = "tar"
    SINGLE_FILE = "single_file"


class EntryKind(StrEnum):
    REGULAR = "regular"
    DIRECTORY = "directory"
    SPARSE = "sparse"
    UNSUPPORTED = "unsupported"


class EntryOutcome(StrEnum):
    CONVERTED = "converted"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureKind(StrEnum):
    OPEN = "open"
    HEADER = "header"
    ENTRY_CREATE = "entry_create"
    COPY = "copy"
    WRITE = "write"


@dataclass(frozen=True)
class OutputNameRule:
    """One recognized input suffix and what it implies."""

    suffix: str
    container: ContainerKind
    compression: CompressionKind

    @property
    def strip(self) -> int:
        return len(self.suffix)


@dataclass(frozen=True)
class DetectedInput:
    container: ContainerKind
    compression: CompressionKind
    base_name: str  # input name with the recognized suffix stripped
    output_name: str
    rule: OutputNameRule | None = None


@dataclass(frozen=True)
class EntryDescriptor:
    name: str
    size: int
    mtime: float  # seconds since the epoch
    kind: EntryKind
    type_code: bytes = b"0"
    mode: int = 0o644


@dataclass(frozen=True)
class ConvertOptions:
    """Per-run settings passed explicitly to every conversion component."""

    verbose: bool = False
    output_extension: str = "zip"
    compresslevel: int | None = None


@dataclass(frozen=True)
class EntryResult:
    name: str
    outcome: EntryOutcome
    kind: EntryKind
    size: int = 0
    failure: FailureKind | None = None
    error: str | None = None


@dataclass
class FileSummary:
    source: Path
    output: Path | None = None
    detected: DetectedInput | None = None
    entries: list[EntryResult] = field(default_factory=list)
    failure: FailureKind | None = None
    error: str | None = None

    def _count(self, outcome: EntryOutcome) -> int:
        return sum(1 for e in self.entries if e.outcome == outcome)

    @property
    def converted(self) -> int:
        return self._count(EntryOutcome.CONVERTED)

    @property
    def skipped(self) -> int:
        return self._count(EntryOutcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(EntryOutcome.FAILED)

    @property
    def ok(self) -> bool:
        return self.failure is None and self.failed == 0
