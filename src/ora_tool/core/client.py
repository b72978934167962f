"""Oracle client for ORA Tool.

Ties the splitter, session manager and executor together: one call to
run() takes raw SQL/PLSQL text through split, acquire, execute and
release.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ora_tool.core import executor
from ora_tool.core.driver import resolve_driver
from ora_tool.core.exceptions import ConnectionError
from ora_tool.core.models import RowSet
from ora_tool.core.session import SessionManager
from ora_tool.core.splitter import split

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ora_tool.core.config import ResolvedConfig, SessionOptions
    from ora_tool.core.driver import DatabaseDriver
    from ora_tool.core.models import AggregatedResult

LIVENESS_QUERY = "SELECT 1 FROM DUAL"


class OraClient:
    """Batch runner for one resolved connection configuration."""

    def __init__(
        self, config: ResolvedConfig, driver: DatabaseDriver | None = None
    ) -> None:
        self.config = config
        self.options: SessionOptions = config.session_options()
        self.credentials = config.credentials()
        if driver is None:
            driver = resolve_driver("oracle", thick_mode=self.options.thick_mode)
        self.sessions = SessionManager(driver)

    def __enter__(self) -> OraClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def run(self, sql: str, request_id: str | None = None) -> list[AggregatedResult]:
        """Split ``sql`` and execute every statement in one batch."""
        return self.execute_statements(split(sql), request_id=request_id)

    def execute_statements(
        self, statements: Sequence[str], request_id: str | None = None
    ) -> list[AggregatedResult]:
        """Execute already-split statements in one batch.

        Raises ConnectionError when no session can be acquired; every
        other failure comes back as an error result.
        """
        log = structlog.get_logger()
        log.debug(
            "running batch",
            statements=len(statements),
            connection_id=self.credentials.connection_id,
        )
        session = self.sessions.acquire(self.options, self.credentials)
        return executor.execute(
            statements,
            session,
            self.options,
            request_id=request_id,
            connection_id=self.credentials.connection_id,
        )

    def test_connection(self) -> bool:
        """Run a trivial query and check it returns exactly one row set."""
        log = structlog.get_logger()
        try:
            results = self.execute_statements([LIVENESS_QUERY])
        except ConnectionError as e:
            log.warning("connection check failed", error=e.message)
            return False
        return (
            len(results) == 1
            and not results[0].error
            and isinstance(results[0].outcome, RowSet)
        )

    def close(self) -> None:
        """Close any pools opened by this client."""
        self.sessions.shutdown()
