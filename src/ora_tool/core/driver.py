"""Driver protocol and registry.

The session layer talks to the database only through a DatabaseDriver.
Drivers register under a name and are resolved once per process with
resolve_driver(); the Oracle driver registers itself on import.

Every driver method maps its client library's errors onto the ORA Tool
hierarchy: connect/ping failures raise ConnectionError, statement failures
StatementSubmissionError, DBMS_OUTPUT failures DiagnosticDrainError and
close failures ReleaseError.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ora_tool.core.config import Credentials, Privilege
    from ora_tool.core.models import ExecuteOptions, RawOutcome


@runtime_checkable
class DatabaseDriver(Protocol):
    """Capabilities the session manager and executor depend on."""

    name: str

    def connect(self, credentials: Credentials, privilege: Privilege) -> Any: ...

    def create_pool(self, credentials: Credentials, size: int) -> Any: ...

    def acquire(self, pool: Any) -> Any: ...

    def ping(self, connection: Any) -> None: ...

    def release(self, pool: Any, connection: Any, *, discard: bool = False) -> None:
        """Return a pooled connection, or drop it from the pool when discarding."""
        ...

    def close(self, connection: Any) -> None: ...

    def close_pool(self, pool: Any) -> None: ...

    def execute(
        self, connection: Any, sql: str, options: ExecuteOptions
    ) -> RawOutcome: ...

    def enable_output(self, connection: Any) -> None: ...

    def read_output_line(self, connection: Any) -> str | None:
        """Next DBMS_OUTPUT line, or None once the buffer is empty."""
        ...


class DriverRegistry:
    """Registry for looking up drivers by name."""

    def __init__(self) -> None:
        self._drivers: dict[str, type[DatabaseDriver]] = {}

    def register(self, name: str, driver_class: type[DatabaseDriver]) -> None:
        self._drivers[name] = driver_class

    def get(self, name: str, **kwargs: object) -> DatabaseDriver:
        """Return a driver instance by name.

        Raises KeyError if the driver name is not registered.
        """
        if name not in self._drivers:
            available = ", ".join(sorted(self._drivers))
            msg = f"Unknown driver {name!r}. Available: {available}"
            raise KeyError(msg)
        return self._drivers[name](**kwargs)

    @property
    def available(self) -> list[str]:
        return sorted(self._drivers)


# Global registry instance populated by driver modules.
registry = DriverRegistry()


@functools.cache
def resolve_driver(name: str = "oracle", thick_mode: bool = False) -> DatabaseDriver:
    """Build the driver for ``name`` once per process."""
    # Import here to trigger registry population from driver modules.
    import ora_tool.core.oracle  # noqa: F401

    return registry.get(name, thick_mode=thick_mode)
