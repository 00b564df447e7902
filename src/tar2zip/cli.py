"""Command-line interface for tar2zip.

Each FILE is converted independently and in order. Per-file problems are
reported as diagnostics and processing continues with the next file.

Exit status:
    0  every file converted without a fatal error or a failed entry
       (always 0 with --lenient)
    1  at least one file failed to open, had a corrupt tar header,
       or had an entry that could not be written
    2  usage or configuration error
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from tar2zip import __version__
from tar2zip.convert import ConvertOptions, ConvertService, FileSummary
from tar2zip.core.config import ConfigResolver
from tar2zip.core.errors import ConfigError
from tar2zip.core.logging import get_logger, set_colors, set_verbosity

log = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tar2zip",
        description="Convert tar, tar.gz, tar.bz2, gz and bz2 files into zip archives.",
    )
    p.add_argument("files", nargs="*", metavar="FILE", help="input files, converted in order")
    p.add_argument(
        "-v", "--verbose", action="store_true", default=None, help="print details about the files"
    )
    level = p.add_mutually_exclusive_group()
    level.add_argument("-q", "--quiet", action="store_true", help="only warnings and errors")
    level.add_argument("-d", "--debug", action="store_true", help="print everything")
    p.add_argument("--config", type=Path, default=None, help="user config file (YAML)")
    p.add_argument(
        "--extension", default=None, help="extension of the output files (default: zip)"
    )
    p.add_argument(
        "--level", type=int, default=None, help="deflate compression level 0-9"
    )
    p.add_argument(
        "--lenient",
        action="store_true",
        help="exit 0 even if some files or entries failed",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def cli_args_from_namespace(ns: argparse.Namespace) -> dict[str, Any]:
    """Nest parsed flags under their config keys for ConfigResolver."""
    cli_args: dict[str, Any] = {}

    def _section(name: str) -> dict[str, Any]:
        return cli_args.setdefault(name, {})

    if ns.quiet:
        _section("logging")["level"] = "quiet"
    elif ns.debug:
        _section("logging")["level"] = "debug"

    if ns.verbose:
        _section("convert")["verbose"] = True
    if ns.extension is not None:
        _section("convert")["output_extension"] = ns.extension.lstrip(".")
    if ns.level is not None:
        _section("convert")["compresslevel"] = ns.level

    return cli_args


def options_from_resolver(resolver: ConfigResolver) -> ConvertOptions:
    """Freeze resolved config into the options passed to the pipeline."""
    return ConvertOptions(
        verbose=resolver.resolve_bool("convert.verbose"),
        output_extension=resolver.resolve_str("convert.output_extension", "zip").lstrip("."),
        compresslevel=resolver.resolve_optional_int("convert.compresslevel", minimum=0, maximum=9),
    )


def exit_code(summaries: Sequence[FileSummary], *, lenient: bool = False) -> int:
    if lenient or all(s.ok for s in summaries):
        return EXIT_OK
    return EXIT_FAILED


def main(argv: Sequence[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)

    resolver = ConfigResolver(
        cli_args=cli_args_from_namespace(ns),
        user_config_path=ns.config,
    )
    try:
        set_verbosity(resolver.resolve_logging_level())
        set_colors(resolver.resolve_bool("logging.color", True))
        options = options_from_resolver(resolver)
        resolved = resolver.resolve_all()
    except ConfigError as e:
        log.error(str(e))
        return EXIT_USAGE

    for key, found in resolved.items():
        log.debug(f"Config {key} = {found.value!r} (from {found.source})")
    log.debug(f"Options: {options}")
    summaries = ConvertService(options).convert_files(ns.files)
    return exit_code(summaries, lenient=ns.lenient)
