"""Input format detection from the file name.

Detection is purely name based and never fails: an unrecognized name is
treated as an uncompressed single file and keeps its full name.
"""

from __future__ import annotations

from .types import CompressionKind, ContainerKind, DetectedInput, OutputNameRule

# Checked in order; a combined suffix must precede the bare compression suffix it ends with.
OUTPUT_NAME_RULES: list[OutputNameRule] = [
    OutputNameRule(".tar.bz2", ContainerKind.TAR, CompressionKind.BZIP2),
    OutputNameRule(".tar.gz", ContainerKind.TAR, CompressionKind.GZIP),
    OutputNameRule(".tbz2", ContainerKind.TAR, CompressionKind.BZIP2),
    OutputNameRule(".tgz", ContainerKind.TAR, CompressionKind.GZIP),
    OutputNameRule(".tbz", ContainerKind.TAR, CompressionKind.BZIP2),
    OutputNameRule(".tar", ContainerKind.TAR, CompressionKind.NONE),
    OutputNameRule(".bz2", ContainerKind.SINGLE_FILE, CompressionKind.BZIP2),
    OutputNameRule(".gz", ContainerKind.SINGLE_FILE, CompressionKind.GZIP),
]


def match_rule(
    filename: str, rules: list[OutputNameRule] | None = None
) -> OutputNameRule | None:
    name = filename.lower()
    table = OUTPUT_NAME_RULES if rules is None else rules
    for rule in table:
        if name.endswith(rule.suffix):
            return rule
    return None


def detect(
    filename: str, output_extension: str = "zip", rules: list[OutputNameRule] | None = None
) -> DetectedInput:
    """Classify an input file name.

    Args:
        filename: Input path as given (directories are kept in the output name)
        output_extension: Extension appended to the stripped name
        rules: Rule table override, checked in order

    Returns:
        DetectedInput with container/compression kinds and the output name
    """
    rule = match_rule(filename, rules)
    if rule is None:
        return DetectedInput(
            container=ContainerKind.SINGLE_FILE,
            compression=CompressionKind.NONE,
            base_name=filename,
            output_name=f"{filename}.{output_extension}",
        )

    base = filename[: len(filename) - rule.strip]
    return DetectedInput(
        container=rule.container,
        compression=rule.compression,
        base_name=base,
        output_name=f"{base}.{output_extension}",
        rule=rule,
    )
