"""JSON formatter for AggregatedResult output."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ora_tool.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ora_tool.core.models import AggregatedResult


def _serialize_value(val: Any) -> Any:
    if isinstance(val, (int, float, str, bool, type(None))):
        return val
    return str(val)


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: AggregatedResult) -> Iterator[str]:
        rows = [
            {col: _serialize_value(row.get(col)) for col in result.columns}
            for row in result.rows
        ]

        if self.compact:
            yield json.dumps(rows, default=str)
        else:
            yield json.dumps(rows, indent=2, default=str)


registry.register("json", JSONFormatter)
