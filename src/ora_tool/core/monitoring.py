"""Sentry integration for error tracking and performance monitoring.

Sentry is initialized early in main() after logging setup. Without
ORA_TOOL_SENTRY_DSN in the environment the SDK stays disabled.
"""

import os

import sentry_sdk

from ora_tool.__about__ import __version__

SENTRY_DSN_ENV = "ORA_TOOL_SENTRY_DSN"


def setup_sentry(environment: str = "local") -> None:
    """Initialize Sentry for error tracking."""
    sentry_sdk.init(
        dsn=os.environ.get(SENTRY_DSN_ENV),
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
