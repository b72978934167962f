"""Exception hierarchy for ORA Tool.

All exceptions carry an exit_code for CLI return value mapping.
Statement-level errors also carry the engine-reported parse position and
the raw driver exception so the executor can report them as data.
"""

from __future__ import annotations

from ora_tool.core.exit_codes import ExitCode


class OraToolError(Exception):
    """Base exception for all ORA Tool errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConnectionError(OraToolError):  # noqa: A001
    """Connect or liveness-check failure."""

    exit_code: int = ExitCode.NETWORK_ERROR


class StatementSubmissionError(OraToolError):
    """Statement rejected by the engine (syntax, permissions, runtime)."""

    def __init__(
        self,
        message: str,
        position: int | None = None,
        raw: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.position = position
        self.raw = raw

    def describe(self) -> str:
        """Message with the parse position appended when one is known."""
        if self.position:
            return f"{self.message} at character {self.position}"
        return self.message


class DiagnosticDrainError(StatementSubmissionError):
    """Failure while enabling or reading DBMS_OUTPUT lines."""


class ReleaseError(OraToolError):
    """Failure while closing or returning a session's connection."""


class InputError(OraToolError):
    """File not found, invalid parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(OraToolError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
