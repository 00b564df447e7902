"""Zip writing for tar2zip.

ArchiveTranscoder copies accepted tar entries into a zip archive, and
SingleFileWrapper stores one decompressed stream as a one-entry archive.
Both finalize the zip (central directory) exactly once, whatever happens
while entries are copied.
"""

from __future__ import annotations

import contextlib
import shutil
import stat
import struct
import tarfile
import time
import warnings
import zipfile
import zlib
from collections.abc import Iterable
from typing import BinaryIO, Protocol

from tar2zip.core.errors import ConvertError, CopyError, EntryCreateError, HeaderError
from tar2zip.core.logging import get_logger

from .entries import EntryIterator
from .types import (
    ConvertOptions,
    EntryDescriptor,
    EntryKind,
    EntryOutcome,
    EntryResult,
    FailureKind,
    FileSummary,
)

log = get_logger(__name__)

COPY_BUFSIZE = 64 * 1024

# Info-ZIP extended timestamp extra field, mtime only.
EXTENDED_TIMESTAMP_ID = 0x5455
_EXTENDED_TIMESTAMP_MTIME = 0x01

_DOS_MIN = (1980, 1, 1, 0, 0, 0)
_DOS_MAX = (2107, 12, 31, 23, 59, 58)
_MSDOS_DIRECTORY = 0x10

# Errors a content copy may raise: decoder errors surface here, lazily.
COPY_ERRORS = (ConvertError, tarfile.TarError, OSError, EOFError, RuntimeError, zlib.error)


class Readable(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class RawNameZipInfo(zipfile.ZipInfo):
    """ZipInfo that writes undecodable tar names back as their raw bytes.

    Tar names that are not valid UTF-8 arrive surrogate-escaped. They are
    stored byte for byte and without the UTF-8 flag.
    """

    __slots__ = ()

    def _encodeFilenameFlags(self):
        try:
            return super()._encodeFilenameFlags()
        except UnicodeEncodeError:
            return self.filename.encode("utf-8", "surrogateescape"), self.flag_bits


def dos_date_time(mtime: float) -> tuple[int, int, int, int, int, int]:
    """Local date/time tuple for a zip header, clamped to the DOS range."""
    t = time.localtime(mtime)[:6]
    if t < _DOS_MIN:
        return _DOS_MIN
    if t > _DOS_MAX:
        return _DOS_MAX
    return t  # type: ignore[return-value]


def extended_timestamp(mtime: float) -> bytes:
    seconds = int(mtime)
    if not -(2**31) <= seconds < 2**31:
        return b""
    return struct.pack("<HHBi", EXTENDED_TIMESTAMP_ID, 5, _EXTENDED_TIMESTAMP_MTIME, seconds)


def zip_info_for(descriptor: EntryDescriptor, options: ConvertOptions) -> RawNameZipInfo:
    """Build the zip header for one entry: name, mtime, deflate, mode bits."""
    zi = RawNameZipInfo(filename=descriptor.name, date_time=dos_date_time(descriptor.mtime))
    zi.compress_type = zipfile.ZIP_DEFLATED
    if options.compresslevel is not None:
        if hasattr(zi, "compress_level"):
            zi.compress_level = options.compresslevel
        else:
            # Python < 3.13 only has the private name
            zi._compresslevel = options.compresslevel  # type: ignore[attr-defined]
    zi.extra = extended_timestamp(descriptor.mtime)

    perm = stat.S_IMODE(descriptor.mode)
    if descriptor.kind == EntryKind.DIRECTORY:
        zi.external_attr = ((stat.S_IFDIR | perm) << 16) | _MSDOS_DIRECTORY
    else:
        zi.external_attr = (stat.S_IFREG | perm) << 16

    if descriptor.size > 0:
        # Lets zipfile pick zip64 headers up front for large members.
        zi.file_size = descriptor.size
    return zi


def copy_entry(
    zf: zipfile.ZipFile,
    descriptor: EntryDescriptor,
    content: Readable,
    options: ConvertOptions,
) -> EntryResult:
    """Create one zip entry and stream content into it.

    Failures are logged and returned as a FAILED result. A copy that fails
    midway leaves the truncated entry in the archive.
    """
    try:
        zi = zip_info_for(descriptor, options)
        with warnings.catch_warnings():
            # Names are copied verbatim; repeated names are kept.
            warnings.filterwarnings("ignore", "Duplicate name", UserWarning)
            dst = zf.open(zi, mode="w", force_zip64=descriptor.size < 0)
    except (ValueError, OverflowError, OSError, RuntimeError) as e:
        err = EntryCreateError(f"Error creating zip header for <{descriptor.name}>: {e}")
        log.error(err.message)
        return EntryResult(
            name=descriptor.name,
            outcome=EntryOutcome.FAILED,
            kind=descriptor.kind,
            failure=FailureKind.ENTRY_CREATE,
            error=err.message,
        )

    try:
        with dst:
            shutil.copyfileobj(content, dst, COPY_BUFSIZE)  # type: ignore[misc]
    except COPY_ERRORS as e:
        err = CopyError(f"Error copying <{descriptor.name}> to zip: {e}")
        log.error(err.message)
        return EntryResult(
            name=descriptor.name,
            outcome=EntryOutcome.FAILED,
            kind=descriptor.kind,
            size=zi.file_size,
            failure=FailureKind.COPY,
            error=err.message,
        )

    return EntryResult(
        name=descriptor.name,
        outcome=EntryOutcome.CONVERTED,
        kind=descriptor.kind,
        size=zi.file_size,
    )


def open_writer(out: BinaryIO, options: ConvertOptions) -> zipfile.ZipFile:
    return zipfile.ZipFile(
        out,
        mode="w",
        compression=zipfile.ZIP_DEFLATED,
        compresslevel=options.compresslevel,
    )


class ArchiveTranscoder:
    """Copy tar entries into a zip archive."""

    def __init__(self, options: ConvertOptions | None = None) -> None:
        self.options = options or ConvertOptions()

    def run(
        self,
        entries: Iterable,
        zf: zipfile.ZipFile,
        summary: FileSummary,
    ) -> FileSummary:
        """Copy every entry into zf, recording one result per entry.

        A HeaderError from the entry source stops the loop and is recorded as
        the file's failure; entry-level failures never stop it.
        """
        try:
            for entry in entries:
                descriptor: EntryDescriptor = entry.descriptor
                if self.options.verbose:
                    log.info(f"Converting <{descriptor.name}>, size {descriptor.size}")
                summary.entries.append(copy_entry(zf, descriptor, entry, self.options))
        except HeaderError as e:
            log.error(e.message)
            summary.failure = FailureKind.HEADER
            summary.error = e.message
        return summary

    def convert_tar(self, stream: BinaryIO, out: BinaryIO, summary: FileSummary) -> FileSummary:
        """Convert a decompressed tar stream into a zip written to out."""

        def _skipped(descriptor: EntryDescriptor) -> None:
            summary.entries.append(
                EntryResult(
                    name=descriptor.name,
                    outcome=EntryOutcome.SKIPPED,
                    kind=descriptor.kind,
                    size=descriptor.size,
                )
            )

        with open_writer(out, self.options) as zf:
            with contextlib.closing(EntryIterator(stream, on_skip=_skipped)) as entries:
                return self.run(entries, zf, summary)


class SingleFileWrapper:
    """Store one stream as the only entry of a zip archive."""

    def __init__(self, options: ConvertOptions | None = None) -> None:
        self.options = options or ConvertOptions()

    def run(
        self,
        stream: BinaryIO,
        name: str,
        mtime: float,
        out: BinaryIO,
        summary: FileSummary,
    ) -> FileSummary:
        if self.options.verbose:
            log.info(f"Converting single non-tar file {name}.")

        # Size is unknown until the stream is drained.
        descriptor = EntryDescriptor(name=name, size=-1, mtime=mtime, kind=EntryKind.REGULAR)
        with open_writer(out, self.options) as zf:
            summary.entries.append(copy_entry(zf, descriptor, stream, self.options))
        return summary
