"""Session management for ORA Tool.

A Session owns exactly one live connection, either leased from a shared
pool or opened standalone. It is released exactly once; later calls to
release() do nothing. The SessionManager keeps one fixed-size pool per
logical connection and tears the pools down on shutdown().
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import structlog

from ora_tool.core.exceptions import ConnectionError, ReleaseError

if TYPE_CHECKING:
    from ora_tool.core.config import Credentials, SessionOptions
    from ora_tool.core.driver import DatabaseDriver
    from ora_tool.core.models import ExecuteOptions, RawOutcome

POOL_SIZE = 4


class Session:
    """Handle to one live database connection."""

    def __init__(
        self,
        driver: DatabaseDriver,
        connection: Any,
        *,
        connection_id: str,
        pool: Any = None,
    ) -> None:
        self.driver = driver
        self.connection = connection
        self.connection_id = connection_id
        self.pool = pool
        self.released = False
        self.diagnostics_enabled = False

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()

    @property
    def pooled(self) -> bool:
        return self.pool is not None

    def ping(self) -> None:
        self.driver.ping(self.connection)

    def submit(self, sql: str, options: ExecuteOptions) -> RawOutcome:
        return self.driver.execute(self.connection, sql, options)

    def enable_diagnostic_output(self) -> None:
        if self.diagnostics_enabled:
            return
        self.driver.enable_output(self.connection)
        self.diagnostics_enabled = True

    def read_diagnostic_line(self) -> str | None:
        return self.driver.read_output_line(self.connection)

    def release(self, discard: bool = False) -> None:
        """Return or close the connection. Failures are logged, never raised."""
        if self.released:
            return
        self.released = True
        log = structlog.get_logger()
        try:
            if self.pooled:
                self.driver.release(self.pool, self.connection, discard=discard)
            else:
                self.driver.close(self.connection)
        except ReleaseError as e:
            log.warning(
                "session release failed",
                connection_id=self.connection_id,
                error=e.message,
            )
        else:
            log.debug(
                "session released",
                connection_id=self.connection_id,
                pooled=self.pooled,
            )


class SessionManager:
    """Acquires sessions, pooled or standalone, for a driver."""

    def __init__(self, driver: DatabaseDriver) -> None:
        self.driver = driver
        self._pools: dict[str, Any] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> SessionManager:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    def acquire(
        self,
        options: SessionOptions,
        credentials: Credentials,
        reuse: Session | None = None,
    ) -> Session:
        """Return a live session.

        ``reuse`` is pinged and handed back when it is still usable;
        otherwise it is discarded and a fresh session is opened.
        A new connection that fails its ping is discarded and replaced
        once. Raises ConnectionError when connecting fails or the
        replacement is dead too.
        """
        log = structlog.get_logger()
        if reuse is not None and not reuse.released:
            try:
                reuse.ping()
            except ConnectionError as e:
                log.warning(
                    "discarding stale session",
                    connection_id=reuse.connection_id,
                    error=e.message,
                )
                reuse.release(discard=True)
            else:
                log.debug("reusing session", connection_id=reuse.connection_id)
                return reuse

        session = self._open(options, credentials)
        try:
            session.ping()
        except ConnectionError as e:
            log.warning(
                "discarding stale session",
                connection_id=credentials.connection_id,
                error=e.message,
            )
            session.release(discard=True)
            session = self._open(options, credentials)
            try:
                session.ping()
            except ConnectionError:
                session.release(discard=True)
                raise
        log.debug(
            "session acquired",
            connection_id=credentials.connection_id,
            pooled=session.pooled,
            privilege=str(options.privilege),
        )
        return session

    def release(self, session: Session) -> None:
        session.release()

    def shutdown(self) -> None:
        """Close every pool this manager created."""
        log = structlog.get_logger()
        with self._lock:
            pools, self._pools = self._pools, {}
        for connection_id, pool in pools.items():
            try:
                self.driver.close_pool(pool)
            except ReleaseError as e:
                log.warning(
                    "pool shutdown failed", connection_id=connection_id, error=e.message
                )

    def _open(self, options: SessionOptions, credentials: Credentials) -> Session:
        if options.pooled:
            pool = self._get_pool(credentials)
            connection = self.driver.acquire(pool)
        else:
            pool = None
            connection = self.driver.connect(credentials, options.privilege)
        return Session(
            self.driver,
            connection,
            connection_id=credentials.connection_id,
            pool=pool,
        )

    def _get_pool(self, credentials: Credentials) -> Any:
        with self._lock:
            pool = self._pools.get(credentials.connection_id)
            if pool is None:
                pool = self.driver.create_pool(credentials, POOL_SIZE)
                self._pools[credentials.connection_id] = pool
            return pool
