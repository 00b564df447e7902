"""Unit tests for convert.decompress."""

from __future__ import annotations

import bz2
import gzip
import io

import pytest

from tar2zip.convert.decompress import open_gzip, wrap
from tar2zip.convert.types import CompressionKind
from tar2zip.core.errors import DecompressionInitError
from tar2zip.core.logging import get_log_bus

PAYLOAD = b"hello tar2zip\n" * 100


def test_none_returns_same_stream():
    raw = io.BytesIO(PAYLOAD)
    assert wrap(CompressionKind.NONE, raw) is raw


def test_gzip_stream_is_decoded():
    raw = io.BytesIO(gzip.compress(PAYLOAD))
    assert wrap(CompressionKind.GZIP, raw).read() == PAYLOAD


def test_bzip2_stream_is_decoded():
    raw = io.BytesIO(bz2.compress(PAYLOAD))
    assert wrap(CompressionKind.BZIP2, raw).read() == PAYLOAD


def test_bad_gzip_header_falls_back_to_raw_bytes():
    with get_log_bus().collect("WARNING") as warnings:
        stream = wrap(CompressionKind.GZIP, io.BytesIO(PAYLOAD))

        assert stream.read() == PAYLOAD

    assert len(warnings) == 1
    assert "File can't be decompressed" in warnings[0].plain


def test_empty_gzip_input_falls_back():
    with get_log_bus().collect("WARNING") as warnings:
        assert wrap(CompressionKind.GZIP, io.BytesIO(b"")).read() == b""
    assert len(warnings) == 1


@pytest.mark.parametrize(
    "head",
    [
        b"\x1f\x8b",  # short
        b"PK\x03\x04" + b"\x00" * 20,  # wrong magic
        b"\x1f\x8b\x07" + b"\x00" * 20,  # not deflate
        b"\x1f\x8b\x08\xe0" + b"\x00" * 20,  # reserved flags
    ],
)
def test_open_gzip_rejects_bad_headers(head):
    with pytest.raises(DecompressionInitError):
        open_gzip(io.BytesIO(head))


def test_bzip2_errors_surface_on_read_not_on_wrap():
    stream = wrap(CompressionKind.BZIP2, io.BytesIO(b"definitely not bzip2 data"))

    with pytest.raises(OSError):
        stream.read()
