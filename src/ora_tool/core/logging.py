"""structlog setup for the ora CLI.

Diagnostics are written to stderr; stdout carries only result sets.
"""

import logging
import sys
from typing import Any

import structlog


class _LazyStderrFactory:
    """Look up sys.stderr each time a logger is created."""

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog; ``verbose`` lowers the threshold to DEBUG."""
    level = logging.DEBUG if verbose else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a logger, tagged with ``name`` when given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
