"""Shared test fixtures for ORA Tool."""

from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from ora_tool.cli.main import app
from ora_tool.core.config import Credentials, SessionOptions
from ora_tool.core.exceptions import ConnectionError
from ora_tool.core.models import RawOutcome


class FakeConnection:
    def __init__(self, number: int) -> None:
        self.number = number
        self.alive = True
        self.closed = False
        self.output_enabled = False
        self.output: list[str] = []


class FakeDriver:
    """In-memory DatabaseDriver.

    ``responses`` maps a statement to the RawOutcome it returns or the
    exception it raises; unknown statements return an empty outcome.
    ``output`` maps a statement to the DBMS_OUTPUT lines it writes.
    """

    name = "fake"

    def __init__(self, responses=None, output=None) -> None:
        self.responses = dict(responses or {})
        self.output = dict(output or {})
        self.fail_connect = False
        # Number of upcoming connections that come back dead.
        self.stale_connections = 0
        self.submitted: list[str] = []
        self.options: list = []
        self.connections: list[FakeConnection] = []
        self.privileges: list = []
        self.pools: list = []
        self.released: list[tuple[FakeConnection, bool]] = []
        self.closed: list[FakeConnection] = []
        self.closed_pools: list = []

    def _new_connection(self) -> FakeConnection:
        if self.fail_connect:
            raise ConnectionError("ORA-12541: TNS:no listener")
        connection = FakeConnection(len(self.connections))
        if self.stale_connections:
            self.stale_connections -= 1
            connection.alive = False
        self.connections.append(connection)
        return connection

    def connect(self, credentials, privilege):
        self.privileges.append(privilege)
        return self._new_connection()

    def create_pool(self, credentials, size):
        pool = SimpleNamespace(connection_id=credentials.connection_id, size=size)
        self.pools.append(pool)
        return pool

    def acquire(self, pool):
        return self._new_connection()

    def ping(self, connection):
        if not connection.alive:
            raise ConnectionError("ORA-03113: end-of-file on communication channel")

    def release(self, pool, connection, *, discard=False):
        self.released.append((connection, discard))

    def close(self, connection):
        connection.closed = True
        self.closed.append(connection)

    def close_pool(self, pool):
        self.closed_pools.append(pool)

    def execute(self, connection, sql, options):
        self.submitted.append(sql)
        self.options.append(options)
        response = self.responses.get(sql, RawOutcome())
        if isinstance(response, Exception):
            raise response
        connection.output.extend(self.output.get(sql, []))
        return response

    def enable_output(self, connection):
        connection.output_enabled = True

    def read_output_line(self, connection):
        if connection.output:
            return connection.output.pop(0)
        return None


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def credentials():
    return Credentials(
        user="scott",
        password="tiger",  # pragma: allowlist secret
        connect_string="localhost:1521/FREEPDB1",
        connection_id="dev",
    )


@pytest.fixture
def session_options():
    return SessionOptions(pooled=False)
