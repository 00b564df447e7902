"""Pytest configuration and fixtures."""

import io
import sys
import tarfile
from pathlib import Path

import pytest

# Add src to path (for 'tar2zip.*' imports without installing)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from tar2zip.core.logging import get_log_bus, set_colors, set_verbosity  # noqa: E402

MTIME = 1_600_000_000


def tar_member(
    name: str,
    data: bytes = b"",
    *,
    type: bytes = tarfile.REGTYPE,
    mtime: int = MTIME,
    linkname: str = "",
    mode: int = 0o644,
) -> tuple[tarfile.TarInfo, bytes]:
    info = tarfile.TarInfo(name=name)
    info.type = type
    info.mtime = mtime
    info.mode = mode
    info.linkname = linkname
    info.size = len(data) if type in (tarfile.REGTYPE, tarfile.AREGTYPE) else 0
    return info, data


def build_tar(members: list[tuple[tarfile.TarInfo, bytes]], encoding: str = "utf-8") -> bytes:
    """Build an uncompressed ustar archive in memory."""
    buf = io.BytesIO()
    with tarfile.open(
        fileobj=buf, mode="w", format=tarfile.USTAR_FORMAT, encoding=encoding
    ) as tar:
        for info, data in members:
            tar.addfile(info, io.BytesIO(data) if info.size else None)
    return buf.getvalue()


def _octal(value: int, width: int) -> bytes:
    return b"%0*o\x00" % (width - 1, value)


def gnu_sparse_tar(name: str, chunks: list[tuple[int, bytes]], real_size: int) -> bytes:
    """Build a GNU tar holding one sparse ('S') member.

    chunks are (offset, data) pairs in the expanded file; at most four, so the
    whole map fits in the main header.
    """
    stored = b"".join(data for _offset, data in chunks)
    header = bytearray(tarfile.BLOCKSIZE)
    header[0 : len(name)] = name.encode()
    header[100:108] = _octal(0o644, 8)
    header[108:116] = _octal(0, 8)
    header[116:124] = _octal(0, 8)
    header[124:136] = _octal(len(stored), 12)
    header[136:148] = _octal(MTIME, 12)
    header[148:156] = b" " * 8
    header[156:157] = tarfile.GNUTYPE_SPARSE
    header[257:265] = tarfile.GNU_MAGIC
    pos = 386
    for offset, data in chunks:
        header[pos : pos + 12] = _octal(offset, 12)
        header[pos + 12 : pos + 24] = _octal(len(data), 12)
        pos += 24
    header[483:495] = _octal(real_size, 12)
    header[148:155] = b"%06o\x00" % sum(header)

    padding = -len(stored) % tarfile.BLOCKSIZE
    return bytes(header) + stored + bytes(padding) + bytes(2 * tarfile.BLOCKSIZE)


def expand_sparse(chunks: list[tuple[int, bytes]], real_size: int) -> bytes:
    content = bytearray(real_size)
    for offset, data in chunks:
        content[offset : offset + len(data)] = data
    return bytes(content)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Keep global console settings and bus subscribers from leaking between tests."""
    set_verbosity("normal")
    set_colors(False)
    get_log_bus().clear()
    yield
    set_verbosity("normal")
    set_colors(True)
    get_log_bus().clear()


@pytest.fixture
def sample_members():
    """Two regular files, a directory and a symlink."""
    return [
        tar_member("a.txt", b"hi"),
        tar_member("b/", type=tarfile.DIRTYPE, mode=0o755),
        tar_member("b/c.bin", bytes(range(256)) * 8),
        tar_member("link", type=tarfile.SYMTYPE, linkname="a.txt"),
    ]


@pytest.fixture
def sample_tar(sample_members) -> bytes:
    return build_tar(sample_members)
