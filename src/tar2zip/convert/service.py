"""Per-file conversion service.

Opens the input, creates the output next to it, picks the decompressor and
runs the tar or single-file path. Failures never escape: every file yields
a FileSummary, and the next file is processed regardless.

Close order matters: the zip is finalized before the output file closes,
and both are released on every path.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from pathlib import Path

from tar2zip.core.errors import OpenError
from tar2zip.core.logging import get_logger

from . import decompress
from .detect import detect
from .transcode import ArchiveTranscoder, SingleFileWrapper
from .types import ContainerKind, ConvertOptions, FailureKind, FileSummary

log = get_logger(__name__)


def _reason(e: OSError) -> str:
    return e.strerror or str(e)


class ConvertService:
    """Convert tar / tar.gz / tar.bz2 / gz / bz2 files into zip archives."""

    def __init__(
        self,
        options: ConvertOptions | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.options = options or ConvertOptions()
        self._clock = clock

    def convert_file(self, path: str | Path) -> FileSummary:
        source = str(path)
        started = self._clock()
        detected = detect(source, self.options.output_extension)
        summary = FileSummary(source=Path(source), detected=detected)

        try:
            raw = open(source, "rb")
        except OSError as e:
            return self._open_failed(summary, OpenError(source, _reason(e)))

        with raw:
            output = Path(detected.output_name)
            try:
                out = open(output, "wb")
            except OSError as e:
                return self._open_failed(summary, OpenError(str(output), _reason(e)))

            summary.output = output
            with out:
                log.info(f"Converting {source}...")
                stream = decompress.wrap(detected.compression, raw)
                try:
                    if detected.container == ContainerKind.TAR:
                        ArchiveTranscoder(self.options).convert_tar(stream, out, summary)
                    else:
                        name = Path(detected.base_name).name
                        SingleFileWrapper(self.options).run(stream, name, started, out, summary)
                except OSError as e:
                    log.error(f"Error writing <{output}>: {_reason(e)}")
                    summary.failure = FailureKind.WRITE
                    summary.error = _reason(e)
                    return summary

        log.verbose(
            f"{source}: {summary.converted} converted, {summary.skipped} skipped, "
            f"{summary.failed} failed"
        )
        log.info("Done!")
        return summary

    def convert_files(self, paths: Iterable[str | Path]) -> list[FileSummary]:
        """Convert each path in order, one file at a time."""
        return [self.convert_file(p) for p in paths]

    def _open_failed(self, summary: FileSummary, err: OpenError) -> FileSummary:
        log.error(err.message)
        summary.failure = FailureKind.OPEN
        summary.error = err.message
        return summary
