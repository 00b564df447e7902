"""Forward-only iteration over the entries of a tar stream.

The tar stream is read strictly sequentially. Each yielded SourceEntry is
readable only until the iterator advances; reading it afterwards raises
StaleEntryError instead of returning bytes of a later member.
"""

from __future__ import annotations

import tarfile
from collections.abc import Callable, Iterator
from typing import BinaryIO

from tar2zip.core.errors import HeaderError, StaleEntryError
from tar2zip.core.logging import get_logger

from .types import EntryDescriptor, EntryKind

log = get_logger(__name__)

ACCEPTED_TYPES: dict[bytes, EntryKind] = {
    tarfile.REGTYPE: EntryKind.REGULAR,
    tarfile.AREGTYPE: EntryKind.REGULAR,
    tarfile.DIRTYPE: EntryKind.DIRECTORY,
    tarfile.GNUTYPE_SPARSE: EntryKind.SPARSE,
}


class _StrictTarInfo(tarfile.TarInfo):
    """TarInfo that reports a bad header after the first member.

    tarfile treats an invalid or truncated header past offset 0 as the end of
    the archive, which would silently drop everything behind it. The same
    goes for a single zero block: the archive only ends cleanly when the
    block after it is zero too, or the stream ends there.
    """

    @classmethod
    def fromtarfile(cls, tarfile_obj):
        try:
            return super().fromtarfile(tarfile_obj)
        except tarfile.EOFHeaderError:
            cls._check_end_of_archive(tarfile_obj)
            raise
        except (tarfile.InvalidHeaderError, tarfile.TruncatedHeaderError) as e:
            if tarfile_obj.offset == 0:
                raise
            raise HeaderError(
                f"Error reading archive: {e} at offset {tarfile_obj.offset}"
            ) from e

    @staticmethod
    def _check_end_of_archive(tarfile_obj) -> None:
        following = tarfile_obj.fileobj.read(tarfile.BLOCKSIZE)
        if not following:
            return
        offset = tarfile_obj.offset + tarfile.BLOCKSIZE
        if len(following) != tarfile.BLOCKSIZE:
            raise HeaderError(f"Error reading archive: truncated header at offset {offset}")
        if following.count(0) != tarfile.BLOCKSIZE:
            raise HeaderError(
                f"Error reading archive: data after zero block at offset {offset}"
            )


def entry_kind(type_code: bytes) -> EntryKind:
    return ACCEPTED_TYPES.get(type_code, EntryKind.UNSUPPORTED)


def describe(info: tarfile.TarInfo) -> EntryDescriptor:
    kind = entry_kind(info.type)
    name = info.name
    # tarfile drops the trailing slash of directory names
    if kind == EntryKind.DIRECTORY and not name.endswith("/"):
        name += "/"
    return EntryDescriptor(
        name=name,
        size=info.size,
        mtime=info.mtime,
        kind=kind,
        type_code=info.type,
        mode=info.mode,
    )


def type_code_value(type_code: bytes) -> int:
    return type_code[0] if type_code else 0


class SourceEntry:
    """One accepted tar member and its content reader."""

    def __init__(self, descriptor: EntryDescriptor, reader: BinaryIO | None) -> None:
        self.descriptor = descriptor
        self._reader = reader
        self._live = True

    @property
    def live(self) -> bool:
        return self._live

    def read(self, size: int = -1) -> bytes:
        if not self._live:
            raise StaleEntryError(self.descriptor.name)
        if self._reader is None:
            return b""
        return self._reader.read(size)

    def invalidate(self) -> None:
        self._live = False
        self._reader = None


class EntryIterator:
    """Lazy iterator of SourceEntry objects over a decompressed tar stream.

    Regular files, directories and sparse files are yielded; every other
    member kind is skipped with one warning and reported to on_skip.

    Raises (from __next__):
        HeaderError: If a member header cannot be read. Iteration is over
            after that; the stream position is unusable.
    """

    def __init__(
        self,
        stream: BinaryIO,
        on_skip: Callable[[EntryDescriptor], None] | None = None,
    ) -> None:
        self._stream = stream
        self._on_skip = on_skip
        self._tar: tarfile.TarFile | None = None
        self._current: SourceEntry | None = None
        self._done = False

    def __iter__(self) -> Iterator[SourceEntry]:
        return self

    def __next__(self) -> SourceEntry:
        if self._current is not None:
            self._current.invalidate()
            self._current = None

        while not self._done:
            info = self._next_info()
            if info is None:
                self._done = True
                break

            descriptor = describe(info)
            if descriptor.kind == EntryKind.UNSUPPORTED:
                log.warning(
                    f"Skipping entry: <{info.name}> with unsupported type: "
                    f"{type_code_value(info.type)}"
                )
                if self._on_skip is not None:
                    self._on_skip(descriptor)
                continue

            reader = None
            if descriptor.kind != EntryKind.DIRECTORY:
                reader = self._tar.extractfile(info)  # type: ignore[union-attr]
            self._current = SourceEntry(descriptor, reader)
            return self._current

        raise StopIteration

    def _next_info(self) -> tarfile.TarInfo | None:
        try:
            if self._tar is None:
                self._tar = tarfile.open(
                    fileobj=self._stream,
                    mode="r|",
                    tarinfo=_StrictTarInfo,
                    encoding="utf-8",
                    errors="surrogateescape",
                )
            return self._tar.next()
        except HeaderError:
            self._done = True
            raise
        except tarfile.ReadError as e:
            self._done = True
            if self._tar is None and str(e) == "empty file":
                return None
            raise HeaderError(f"Error reading archive: {e}") from e
        except (tarfile.TarError, OSError, EOFError) as e:
            self._done = True
            raise HeaderError(f"Error reading archive: {e}") from e

    def close(self) -> None:
        if self._current is not None:
            self._current.invalidate()
            self._current = None
        self._done = True
        if self._tar is not None:
            self._tar.close()
            self._tar = None
