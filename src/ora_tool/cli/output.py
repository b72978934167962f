"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ora_tool.core.models import AggregatedResult
    from ora_tool.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None) -> str:
    """Determine the output format.

    Explicit --format overrides TTY detection.
    Default: table for TTY, csv for pipes.
    """
    if format_flag is not None:
        return format_flag
    return "table" if detect_tty() else "csv"


def get_formatter(
    format_flag: str | None = None,
    *,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
) -> Formatter:
    """Build and return the appropriate formatter instance."""
    # Import here to trigger registry population from formatter modules.
    import ora_tool.formatters.csv  # noqa: F401
    import ora_tool.formatters.json  # noqa: F401
    import ora_tool.formatters.table  # noqa: F401
    from ora_tool.formatters.base import registry

    fmt_name = resolve_format(format_flag)

    kwargs: dict[str, object] = {}
    if fmt_name == "table":
        kwargs["width"] = width
    elif fmt_name == "json":
        kwargs["compact"] = compact
    elif fmt_name == "csv":
        kwargs["no_header"] = no_header

    return registry.get(fmt_name, **kwargs)


def write_output(formatter: Formatter, result: AggregatedResult) -> None:
    """Write one formatted result to stdout."""
    for line in formatter.format(result):
        sys.stdout.write(line + "\n")


def write_results(formatter: Formatter, results: Sequence[AggregatedResult]) -> None:
    """Write a batch of results, separated by blank lines."""
    for index, result in enumerate(results):
        if index:
            sys.stdout.write("\n")
        write_output(formatter, result)
