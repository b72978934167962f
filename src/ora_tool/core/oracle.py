"""Oracle driver for ORA Tool.

Wraps python-oracledb connections and pools. Thin mode is the default;
thick mode loads the Oracle Client libraries once per process. DATE,
NUMBER and CLOB columns are fetched as strings so results render the way
the database formats them.
"""

from __future__ import annotations

import functools
import time
from typing import Any

import oracledb
import sentry_sdk
import structlog

from ora_tool.core.config import Credentials, Privilege
from ora_tool.core.driver import registry
from ora_tool.core.exceptions import (
    ConnectionError,
    DiagnosticDrainError,
    ReleaseError,
    StatementSubmissionError,
)
from ora_tool.core.lexer import first_keyword
from ora_tool.core.models import ExecuteOptions, RawOutcome

_AUTH_MODES: dict[Privilege, Any] = {
    Privilege.NORMAL: oracledb.AUTH_MODE_DEFAULT,
    Privilege.SYSDBA: oracledb.AUTH_MODE_SYSDBA,
    Privilege.SYSOPER: oracledb.AUTH_MODE_SYSOPER,
    Privilege.SYSASM: oracledb.AUTH_MODE_SYSASM,
    Privilege.SYSBACKUP: oracledb.AUTH_MODE_SYSBKP,
    Privilege.SYSDG: oracledb.AUTH_MODE_SYSDGD,
    Privilege.SYSKM: oracledb.AUTH_MODE_SYSKMT,
    Privilege.SYSPRELIM: oracledb.AUTH_MODE_PRELIM,
    Privilege.SYSRAC: oracledb.AUTH_MODE_SYSRAC,
}

_DML_KEYWORDS = frozenset({"INSERT", "UPDATE", "DELETE", "MERGE"})

_ENABLE_OUTPUT_SQL = "BEGIN DBMS_OUTPUT.ENABLE(NULL); END;"

# DBMS_OUTPUT.GET_LINE caps a line at 32767 bytes.
_MAX_OUTPUT_LINE = 32767


@functools.cache
def _init_thick_mode() -> None:
    try:
        oracledb.init_oracle_client()
    except oracledb.Error as e:
        raise ConnectionError(f"Cannot load Oracle Client libraries: {e}") from e


def _fetch_as_string(cursor: Any, metadata: Any) -> Any:
    if metadata.type_code in (oracledb.DB_TYPE_DATE, oracledb.DB_TYPE_NUMBER):
        return cursor.var(str, arraysize=cursor.arraysize)
    if metadata.type_code is oracledb.DB_TYPE_CLOB:
        return cursor.var(oracledb.DB_TYPE_LONG, arraysize=cursor.arraysize)
    return None


def _error_details(exc: oracledb.Error) -> tuple[str, int | None]:
    """Message text and parse offset of an oracledb error."""
    error = exc.args[0] if exc.args else None
    message = getattr(error, "message", None) or str(exc)
    offset = getattr(error, "offset", None)
    return message.strip(), offset or None


class OracleDriver:
    """DatabaseDriver backed by python-oracledb."""

    name = "oracle"

    def __init__(self, thick_mode: bool = False) -> None:
        self.thick_mode = thick_mode
        if thick_mode:
            _init_thick_mode()

    # -- connections --

    def connect(self, credentials: Credentials, privilege: Privilege) -> Any:
        try:
            connection = oracledb.connect(
                user=credentials.user,
                password=credentials.password,
                dsn=credentials.connect_string,
                mode=_AUTH_MODES[privilege],
            )
        except oracledb.Error as e:
            message, _ = _error_details(e)
            msg = f"Connection failed to {credentials.connect_string}: {message}"
            raise ConnectionError(msg) from e
        connection.outputtypehandler = _fetch_as_string
        return connection

    def create_pool(self, credentials: Credentials, size: int) -> Any:
        try:
            return oracledb.create_pool(
                user=credentials.user,
                password=credentials.password,
                dsn=credentials.connect_string,
                min=size,
                max=size,
                increment=0,
                getmode=oracledb.POOL_GETMODE_WAIT,
            )
        except oracledb.Error as e:
            message, _ = _error_details(e)
            msg = f"Cannot create pool for {credentials.connect_string}: {message}"
            raise ConnectionError(msg) from e

    def acquire(self, pool: Any) -> Any:
        try:
            connection = pool.acquire()
        except oracledb.Error as e:
            message, _ = _error_details(e)
            raise ConnectionError(f"Cannot acquire pooled connection: {message}") from e
        connection.outputtypehandler = _fetch_as_string
        return connection

    def ping(self, connection: Any) -> None:
        try:
            connection.ping()
        except oracledb.Error as e:
            message, _ = _error_details(e)
            raise ConnectionError(f"Connection is not alive: {message}") from e

    def release(self, pool: Any, connection: Any, *, discard: bool = False) -> None:
        try:
            if discard:
                pool.drop(connection)
            else:
                pool.release(connection)
        except oracledb.Error as e:
            raise ReleaseError(f"Cannot return pooled connection: {e}") from e

    def close(self, connection: Any) -> None:
        try:
            connection.close()
        except oracledb.Error as e:
            raise ReleaseError(f"Cannot close connection: {e}") from e

    def close_pool(self, pool: Any) -> None:
        try:
            pool.close(force=True)
        except oracledb.Error as e:
            raise ReleaseError(f"Cannot close pool: {e}") from e

    # -- statements --

    def execute(self, connection: Any, sql: str, options: ExecuteOptions) -> RawOutcome:
        log = structlog.get_logger()
        sql_normalized = " ".join(sql.split())
        log.debug("executing statement", sql=sql_normalized)
        with sentry_sdk.start_span(
            op="db.query", description=sql_normalized[:100]
        ) as span:
            start_time = time.monotonic()
            try:
                connection.autocommit = options.auto_commit
                with connection.cursor() as cur:
                    cur.execute(sql)
                    if cur.description:
                        columns = [desc[0] for desc in cur.description]
                        cur.rowfactory = lambda *values: dict(zip(columns, values))
                        if options.max_rows:
                            rows = cur.fetchmany(options.max_rows)
                        else:
                            rows = cur.fetchall()
                        outcome = RawOutcome(rows=rows)
                    elif options.dml_row_counts and first_keyword(sql) in _DML_KEYWORDS:
                        outcome = RawOutcome(rows_affected=cur.rowcount)
                    else:
                        outcome = RawOutcome()
            except oracledb.Error as e:
                span.set_status("invalid_argument")
                message, offset = _error_details(e)
                log.error("statement failed", sql=sql_normalized, error=message)
                raise StatementSubmissionError(message, position=offset, raw=e) from e

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("duration_ms", duration_ms)
            log.debug("statement complete", duration_ms=f"{duration_ms:.1f}")
            return outcome

    def enable_output(self, connection: Any) -> None:
        try:
            with connection.cursor() as cur:
                cur.execute(_ENABLE_OUTPUT_SQL)
        except oracledb.Error as e:
            message, offset = _error_details(e)
            raise DiagnosticDrainError(
                f"Cannot enable DBMS_OUTPUT: {message}", position=offset, raw=e
            ) from e

    def read_output_line(self, connection: Any) -> str | None:
        try:
            with connection.cursor() as cur:
                line_var = cur.var(str, _MAX_OUTPUT_LINE)
                status_var = cur.var(int)
                cur.callproc("dbms_output.get_line", (line_var, status_var))
        except oracledb.Error as e:
            message, offset = _error_details(e)
            raise DiagnosticDrainError(
                f"Cannot read DBMS_OUTPUT: {message}", position=offset, raw=e
            ) from e
        if status_var.getvalue() != 0:
            return None
        return line_var.getvalue() or ""


registry.register("oracle", OracleDriver)
