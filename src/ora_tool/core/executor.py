"""Batch execution for ORA Tool.

Runs statements strictly in order on one session, classifies each
outcome, and stops at the first failure. The session is released when
the batch ends, whichever way it ends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from ora_tool.core.exceptions import OraToolError, StatementSubmissionError
from ora_tool.core.models import (
    DIAGNOSTIC_COLUMN,
    ROWS_AFFECTED_COLUMN,
    AggregatedResult,
    DiagnosticOutput,
    ExecuteOptions,
    RowsAffected,
    RowSet,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ora_tool.core.config import SessionOptions
    from ora_tool.core.models import ExecutionOutcome, RawOutcome
    from ora_tool.core.session import Session


def drain_diagnostic_output(session: Session) -> str:
    """Read DBMS_OUTPUT until it reports no more lines.

    Every line is followed by a newline; an empty buffer gives "".
    """
    lines: list[str] = []
    while (line := session.read_diagnostic_line()) is not None:
        lines.append(line)
    return "".join(f"{line}\n" for line in lines)


def classify(raw: RawOutcome, session: Session) -> ExecutionOutcome:
    """Decide which of the three outcome shapes a raw result is."""
    if raw.rows_affected is not None:
        return RowsAffected(count=raw.rows_affected)
    if raw.rows is not None:
        columns = list(raw.rows[0]) if raw.rows else []
        return RowSet(rows=raw.rows, columns=columns)
    return DiagnosticOutput(text=drain_diagnostic_output(session))


def _to_result(
    outcome: ExecutionOutcome,
    statement: str,
    *,
    request_id: str,
    connection_id: str | None,
) -> AggregatedResult:
    match outcome:
        case RowsAffected():
            columns = [ROWS_AFFECTED_COLUMN]
            rows = [{ROWS_AFFECTED_COLUMN: outcome.message}]
            messages = [outcome.message]
        case RowSet():
            columns = outcome.columns
            rows = outcome.rows
            messages = []
        case DiagnosticOutput():
            columns = [DIAGNOSTIC_COLUMN]
            rows = [{DIAGNOSTIC_COLUMN: outcome.text}]
            messages = [outcome.text]

    return AggregatedResult(
        request_id=request_id,
        connection_id=connection_id,
        columns=columns,
        messages=messages,
        query=statement,
        rows=rows,
        outcome=outcome,
    )


def execute(
    statements: Sequence[str],
    session: Session,
    options: SessionOptions,
    *,
    request_id: str | None = None,
    connection_id: str | None = None,
) -> list[AggregatedResult]:
    """Execute ``statements`` in order and release ``session``.

    Returns one result per statement. When a statement fails, the
    remaining ones are skipped and a single error result is returned
    instead. No rollback is issued for work done before the failure.
    """
    request_id = request_id or str(uuid4())
    connection_id = connection_id or session.connection_id
    execute_options = ExecuteOptions(
        auto_commit=options.auto_commit, max_rows=options.max_rows
    )
    results: list[AggregatedResult] = []
    messages: list[str] = []
    statement = ""

    with structlog.contextvars.bound_contextvars(request_id=request_id):
        log = structlog.get_logger()
        try:
            session.enable_diagnostic_output()
            for index, statement in enumerate(statements):
                raw = session.submit(statement, execute_options)
                outcome = classify(raw, session)
                result = _to_result(
                    outcome,
                    statement,
                    request_id=request_id,
                    connection_id=connection_id,
                )
                log.debug("statement classified", index=index, kind=outcome.kind)
                messages.extend(result.messages)
                results.append(result)
        except OraToolError as e:
            if isinstance(e, StatementSubmissionError):
                text = e.describe()
                raw_error = e.raw or e
            else:
                text = e.message
                raw_error = e
            log.info("batch aborted", completed=len(results), error=text)
            return [
                AggregatedResult(
                    request_id=request_id,
                    connection_id=connection_id,
                    messages=[*messages, text],
                    query=statement,
                    error=True,
                    raw_error=raw_error,
                )
            ]
        finally:
            session.release()

    return results
