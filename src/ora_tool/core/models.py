"""Result models for ORA Tool.

Pydantic models for the three shapes a statement outcome can take and
for the per-statement record handed back to callers.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

ROWS_AFFECTED_COLUMN = "rowsAffected"
DIAGNOSTIC_COLUMN = "DBMS_OUTPUT"


class ExecuteOptions(BaseModel):
    """Options a statement is submitted with."""

    dml_row_counts: bool = True
    auto_commit: bool = False
    max_rows: int | None = None


class RawOutcome(BaseModel):
    """What the driver observed after running one statement."""

    rows_affected: int | None = None
    rows: list[dict[str, Any]] | None = None


class RowsAffected(BaseModel):
    kind: Literal["rows_affected"] = "rows_affected"
    count: int

    @property
    def message(self) -> str:
        return f"{self.count} rows were affected."


class RowSet(BaseModel):
    kind: Literal["row_set"] = "row_set"
    rows: list[dict[str, Any]]
    columns: list[str]


class DiagnosticOutput(BaseModel):
    kind: Literal["diagnostic_output"] = "diagnostic_output"
    text: str


ExecutionOutcome = Annotated[
    RowsAffected | RowSet | DiagnosticOutput, Field(discriminator="kind")
]


class AggregatedResult(BaseModel):
    """Uniform record for one executed statement or one failed batch."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    request_id: str
    result_id: str = Field(default_factory=lambda: str(uuid4()))
    connection_id: str | None = None
    columns: list[str] = []
    messages: list[str] = []
    query: str
    rows: list[dict[str, Any]] = []
    error: bool = False
    raw_error: BaseException | None = Field(default=None, exclude=True)
    outcome: ExecutionOutcome | None = None
