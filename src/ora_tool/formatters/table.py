"""Rich table formatter for AggregatedResult output."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from ora_tool.core.models import RowSet
from ora_tool.formatters.base import cell_text, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ora_tool.core.models import AggregatedResult

_NO_RESULTS = "No results"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


class TableFormatter:
    def __init__(self, width: int = 40) -> None:
        self.width = width

    def format(self, result: AggregatedResult) -> Iterator[str]:
        # Affected-row counts and DBMS_OUTPUT read better as plain text.
        if result.outcome is not None and not isinstance(result.outcome, RowSet):
            for message in result.messages:
                if message:
                    yield message.rstrip("\n")
            return

        if not result.rows:
            yield _NO_RESULTS
            return

        table = Table(show_edge=True, pad_edge=True)
        for col in result.columns:
            table.add_column(col, no_wrap=True)

        for row in result.rows:
            cells = (cell_text(row.get(col)) for col in result.columns)
            table.add_row(*(_truncate(cell, self.width) for cell in cells))

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        console.print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
