"""Decompression stream selection.

A gzip stream whose header cannot be parsed degrades to the raw stream (the
bytes are then read as if they were never compressed). Bzip2 problems only
surface on read and propagate to the caller.
"""

from __future__ import annotations

import bz2
import gzip
import io
from typing import BinaryIO

from tar2zip.core.errors import DecompressionInitError
from tar2zip.core.logging import get_logger

from .types import CompressionKind

log = get_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
GZIP_DEFLATE = 8
_GZIP_HEADER_SIZE = 10
_GZIP_RESERVED_FLAGS = 0xE0


def _peekable(raw: BinaryIO) -> io.BufferedReader:
    if isinstance(raw, io.BufferedReader):
        return raw
    return io.BufferedReader(raw)  # type: ignore[arg-type]


def _check_gzip_header(head: bytes) -> None:
    if len(head) < _GZIP_HEADER_SIZE:
        raise DecompressionInitError("gzip: unexpected end of header")
    if head[:2] != GZIP_MAGIC:
        raise DecompressionInitError("gzip: invalid header")
    if head[2] != GZIP_DEFLATE:
        raise DecompressionInitError(f"gzip: unsupported compression method {head[2]}")
    if head[3] & _GZIP_RESERVED_FLAGS:
        raise DecompressionInitError("gzip: reserved header flags set")


def open_gzip(raw: BinaryIO) -> BinaryIO:
    """Open a gzip decoder over raw after validating its fixed header.

    The header is only peeked, so raw is left untouched when this raises.

    Raises:
        DecompressionInitError: If the stream does not start with a gzip header
    """
    stream = _peekable(raw)
    _check_gzip_header(stream.peek(_GZIP_HEADER_SIZE)[:_GZIP_HEADER_SIZE])
    return gzip.GzipFile(fileobj=stream, mode="rb")  # type: ignore[return-value]


def wrap(compression: CompressionKind, raw: BinaryIO) -> BinaryIO:
    """Return a stream yielding the decompressed bytes of raw."""
    if compression == CompressionKind.GZIP:
        stream = _peekable(raw)
        try:
            return open_gzip(stream)
        except DecompressionInitError as e:
            log.warning(f"File can't be decompressed: {e.message}")
            return stream  # type: ignore[return-value]

    if compression == CompressionKind.BZIP2:
        return bz2.BZ2File(raw, mode="rb")  # type: ignore[return-value]

    return raw
