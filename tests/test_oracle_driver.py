"""Tests for the python-oracledb driver, with oracledb calls mocked."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import oracledb
import pytest

from ora_tool.core.config import Privilege
from ora_tool.core.driver import DatabaseDriver, registry, resolve_driver
from ora_tool.core.exceptions import (
    ConnectionError,
    DiagnosticDrainError,
    ReleaseError,
    StatementSubmissionError,
)
from ora_tool.core.models import ExecuteOptions, RawOutcome
from ora_tool.core.oracle import OracleDriver, _fetch_as_string, _init_thick_mode


def _db_error(message, offset=0, cls=oracledb.DatabaseError):
    return cls(SimpleNamespace(message=message, offset=offset))


def _connection_with_cursor():
    connection = MagicMock()
    cursor = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    return connection, cursor


@pytest.fixture
def driver():
    return OracleDriver()


# -- Registration --


@pytest.mark.unit
class TestRegistration:
    def test_implements_protocol(self, driver):
        assert isinstance(driver, DatabaseDriver)

    def test_registered_as_oracle(self):
        assert "oracle" in registry.available
        assert isinstance(registry.get("oracle"), OracleDriver)

    def test_unknown_driver(self):
        with pytest.raises(KeyError, match="Unknown driver 'mysql'"):
            registry.get("mysql")

    def test_resolve_driver_is_cached(self):
        assert resolve_driver("oracle") is resolve_driver("oracle")

    def test_thick_mode_loads_client_once(self):
        _init_thick_mode.cache_clear()
        with patch("ora_tool.core.oracle.oracledb.init_oracle_client") as init:
            OracleDriver(thick_mode=True)
            OracleDriver(thick_mode=True)
        init.assert_called_once_with()
        _init_thick_mode.cache_clear()

    def test_thick_mode_failure(self):
        _init_thick_mode.cache_clear()
        with (
            patch(
                "ora_tool.core.oracle.oracledb.init_oracle_client",
                side_effect=_db_error("DPI-1047: Cannot locate client library"),
            ),
            pytest.raises(ConnectionError, match="Oracle Client libraries"),
        ):
            OracleDriver(thick_mode=True)
        _init_thick_mode.cache_clear()


# -- Connections --


@pytest.mark.unit
class TestConnections:
    def test_connect_standalone(self, driver, credentials):
        with patch("ora_tool.core.oracle.oracledb.connect") as connect:
            connection = driver.connect(credentials, Privilege.SYSDBA)
        connect.assert_called_once_with(
            user="scott",
            password="tiger",  # pragma: allowlist secret
            dsn="localhost:1521/FREEPDB1",
            mode=oracledb.AUTH_MODE_SYSDBA,
        )
        assert connection.outputtypehandler is _fetch_as_string

    def test_connect_failure(self, driver, credentials):
        err = _db_error(
            "DPY-6005: cannot connect to database", cls=oracledb.OperationalError
        )
        with (
            patch("ora_tool.core.oracle.oracledb.connect", side_effect=err),
            pytest.raises(ConnectionError, match="localhost:1521/FREEPDB1: DPY-6005"),
        ):
            driver.connect(credentials, Privilege.NORMAL)

    def test_create_pool(self, driver, credentials):
        with patch("ora_tool.core.oracle.oracledb.create_pool") as create_pool:
            driver.create_pool(credentials, 4)
        kwargs = create_pool.call_args.kwargs
        assert kwargs["min"] == kwargs["max"] == 4
        assert kwargs["increment"] == 0
        assert kwargs["dsn"] == "localhost:1521/FREEPDB1"

    def test_acquire_from_pool(self, driver):
        pool = MagicMock()
        connection = driver.acquire(pool)
        assert connection is pool.acquire.return_value
        assert connection.outputtypehandler is _fetch_as_string

    def test_acquire_failure(self, driver):
        pool = MagicMock()
        pool.acquire.side_effect = _db_error("DPY-4005: timed out")
        with pytest.raises(ConnectionError, match="DPY-4005"):
            driver.acquire(pool)

    def test_ping_failure(self, driver):
        connection = MagicMock()
        connection.ping.side_effect = _db_error("DPY-4011: connection closed")
        with pytest.raises(ConnectionError, match="not alive"):
            driver.ping(connection)

    def test_release_returns_to_pool(self, driver):
        pool, connection = MagicMock(), MagicMock()
        driver.release(pool, connection)
        pool.release.assert_called_once_with(connection)
        pool.drop.assert_not_called()

    def test_release_discard_drops(self, driver):
        pool, connection = MagicMock(), MagicMock()
        driver.release(pool, connection, discard=True)
        pool.drop.assert_called_once_with(connection)

    def test_release_failure(self, driver):
        pool = MagicMock()
        pool.release.side_effect = _db_error("DPY-1001: not connected")
        with pytest.raises(ReleaseError):
            driver.release(pool, MagicMock())

    def test_close(self, driver):
        connection = MagicMock()
        driver.close(connection)
        connection.close.assert_called_once_with()

    def test_close_failure(self, driver):
        connection = MagicMock()
        connection.close.side_effect = _db_error("DPY-1001: not connected")
        with pytest.raises(ReleaseError, match="Cannot close connection"):
            driver.close(connection)

    def test_close_pool(self, driver):
        pool = MagicMock()
        driver.close_pool(pool)
        pool.close.assert_called_once_with(force=True)


# -- Statements --


@pytest.mark.unit
class TestExecute:
    def test_query_rows(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.description = [("ID",), ("NAME",)]
        cursor.fetchall.return_value = [{"ID": "1", "NAME": "a"}]

        raw = driver.execute(connection, "SELECT id, name FROM t", ExecuteOptions())

        assert raw == RawOutcome(rows=[{"ID": "1", "NAME": "a"}])
        cursor.execute.assert_called_once_with("SELECT id, name FROM t")
        assert cursor.rowfactory("2", "b") == {"ID": "2", "NAME": "b"}
        assert connection.autocommit is False

    def test_max_rows_limits_fetch(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.description = [("N",)]
        cursor.fetchmany.return_value = [{"N": "1"}]

        driver.execute(connection, "SELECT n FROM t", ExecuteOptions(max_rows=5))

        cursor.fetchmany.assert_called_once_with(5)
        cursor.fetchall.assert_not_called()

    def test_auto_commit(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.description = None
        driver.execute(connection, "BEGIN NULL; END;", ExecuteOptions(auto_commit=True))
        assert connection.autocommit is True

    @pytest.mark.parametrize(
        "sql",
        [
            "INSERT INTO t VALUES (1)",
            "update t set x = 1",
            "/* purge */ DELETE FROM t",
            "MERGE INTO t USING s ON (t.id = s.id) WHEN MATCHED THEN UPDATE SET x = 1",
        ],
    )
    def test_dml_row_count(self, driver, sql):
        connection, cursor = _connection_with_cursor()
        cursor.description = None
        cursor.rowcount = 3
        assert driver.execute(connection, sql, ExecuteOptions()) == RawOutcome(
            rows_affected=3
        )

    def test_dml_row_counts_disabled(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.description = None
        cursor.rowcount = 3
        options = ExecuteOptions(dml_row_counts=False)
        raw = driver.execute(connection, "DELETE FROM t", options)
        assert raw == RawOutcome()

    def test_block_has_empty_outcome(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.description = None
        cursor.rowcount = 0
        raw = driver.execute(connection, "BEGIN NULL; END;", ExecuteOptions())
        assert raw == RawOutcome()

    def test_ddl_has_empty_outcome(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.description = None
        raw = driver.execute(connection, "CREATE TABLE t (x NUMBER)", ExecuteOptions())
        assert raw == RawOutcome()

    def test_statement_error(self, driver):
        connection, cursor = _connection_with_cursor()
        err = _db_error("ORA-00942: table or view does not exist\n", offset=14)
        cursor.execute.side_effect = err

        with pytest.raises(StatementSubmissionError) as exc_info:
            driver.execute(connection, "SELECT * FROM nope", ExecuteOptions())

        assert exc_info.value.message == "ORA-00942: table or view does not exist"
        assert exc_info.value.position == 14
        assert exc_info.value.raw is err

    def test_statement_error_without_offset(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.execute.side_effect = _db_error("ORA-00900: invalid SQL statement")

        with pytest.raises(StatementSubmissionError) as exc_info:
            driver.execute(connection, "SELEKT * FROM t", ExecuteOptions())

        assert exc_info.value.position is None
        assert exc_info.value.describe() == "ORA-00900: invalid SQL statement"


# -- DBMS_OUTPUT --


@pytest.mark.unit
class TestDiagnosticOutput:
    def test_enable_output(self, driver):
        connection, cursor = _connection_with_cursor()
        driver.enable_output(connection)
        cursor.execute.assert_called_once_with("BEGIN DBMS_OUTPUT.ENABLE(NULL); END;")

    def test_enable_output_failure(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.execute.side_effect = _db_error("ORA-06550: line 1")
        with pytest.raises(DiagnosticDrainError, match="Cannot enable DBMS_OUTPUT"):
            driver.enable_output(connection)

    def test_read_line(self, driver):
        connection, cursor = _connection_with_cursor()
        line_var, status_var = MagicMock(), MagicMock()
        cursor.var.side_effect = [line_var, status_var]
        line_var.getvalue.return_value = "hi"
        status_var.getvalue.return_value = 0

        assert driver.read_output_line(connection) == "hi"
        cursor.callproc.assert_called_once_with(
            "dbms_output.get_line", (line_var, status_var)
        )

    def test_read_empty_line(self, driver):
        connection, cursor = _connection_with_cursor()
        line_var, status_var = MagicMock(), MagicMock()
        cursor.var.side_effect = [line_var, status_var]
        line_var.getvalue.return_value = None
        status_var.getvalue.return_value = 0

        assert driver.read_output_line(connection) == ""

    def test_no_more_lines(self, driver):
        connection, cursor = _connection_with_cursor()
        line_var, status_var = MagicMock(), MagicMock()
        cursor.var.side_effect = [line_var, status_var]
        status_var.getvalue.return_value = 1

        assert driver.read_output_line(connection) is None

    def test_read_failure(self, driver):
        connection, cursor = _connection_with_cursor()
        cursor.callproc.side_effect = _db_error("ORA-06502: numeric or value error")
        with pytest.raises(DiagnosticDrainError, match="ORA-06502"):
            driver.read_output_line(connection)


# -- Output type handler --


@pytest.mark.unit
class TestFetchAsString:
    @pytest.mark.parametrize(
        "type_code", [oracledb.DB_TYPE_NUMBER, oracledb.DB_TYPE_DATE]
    )
    def test_numbers_and_dates_as_strings(self, type_code):
        cursor = MagicMock()
        var = _fetch_as_string(cursor, SimpleNamespace(type_code=type_code))
        assert var is cursor.var.return_value
        cursor.var.assert_called_once_with(str, arraysize=cursor.arraysize)

    def test_clob_as_long(self):
        cursor = MagicMock()
        _fetch_as_string(cursor, SimpleNamespace(type_code=oracledb.DB_TYPE_CLOB))
        cursor.var.assert_called_once_with(
            oracledb.DB_TYPE_LONG, arraysize=cursor.arraysize
        )

    def test_other_types_untouched(self):
        cursor = MagicMock()
        result = _fetch_as_string(
            cursor, SimpleNamespace(type_code=oracledb.DB_TYPE_VARCHAR)
        )
        assert result is None
        cursor.var.assert_not_called()
