"""Tar to zip conversion pipeline."""

from .decompress import wrap
from .detect import OUTPUT_NAME_RULES, detect
from .entries import EntryIterator, SourceEntry
from .service import ConvertService
from .transcode import ArchiveTranscoder, SingleFileWrapper
from .types import (
    CompressionKind,
    ContainerKind,
    ConvertOptions,
    DetectedInput,
    EntryDescriptor,
    EntryKind,
    EntryOutcome,
    EntryResult,
    FailureKind,
    FileSummary,
    OutputNameRule,
)

__all__ = [
    "OUTPUT_NAME_RULES",
    "ArchiveTranscoder",
    "CompressionKind",
    "ContainerKind",
    "ConvertOptions",
    "ConvertService",
    "DetectedInput",
    "EntryDescriptor",
    "EntryIterator",
    "EntryKind",
    "EntryOutcome",
    "EntryResult",
    "FailureKind",
    "FileSummary",
    "OutputNameRule",
    "SingleFileWrapper",
    "SourceEntry",
    "detect",
    "wrap",
]
