"""CSV formatter for AggregatedResult output (RFC 4180 compliant)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING

from ora_tool.formatters.base import cell_text, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ora_tool.core.models import AggregatedResult


def _write_row(values: list[str]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(values)
    return buf.getvalue().rstrip("\r\n")


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: AggregatedResult) -> Iterator[str]:
        if not self.no_header:
            yield _write_row(list(result.columns))

        for row in result.rows:
            yield _write_row([cell_text(row.get(col)) for col in result.columns])


registry.register("csv", CSVFormatter)
