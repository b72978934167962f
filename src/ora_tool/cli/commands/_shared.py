"""Shared CLI plumbing for command modules.

Client creation, format-option handling, and output helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ora_tool.cli.output import get_formatter, write_results
from ora_tool.core.client import OraClient
from ora_tool.core.config import load_config, resolve_config

if TYPE_CHECKING:
    from collections.abc import Sequence

    import typer

    from ora_tool.core.config import ResolvedConfig
    from ora_tool.core.models import AggregatedResult

_CONNECTION_KEYS = (
    "host",
    "port",
    "service",
    "connect_string",
    "user",
    "password",
    "privilege",
    "pool",
    "thick",
)


def get_resolved_config(ctx: typer.Context, **overrides: Any) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in _CONNECTION_KEYS:
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    for key, val in overrides.items():
        if val is not None:
            cli_overrides[key] = val

    return resolve_config(
        config,
        profile_name=obj.get("profile"),
        dsn=obj.get("dsn"),
        **cli_overrides,
    )


def get_client(ctx: typer.Context, **overrides: Any) -> OraClient:
    return OraClient(get_resolved_config(ctx, **overrides))


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def output_results(ctx: typer.Context, results: Sequence[AggregatedResult]) -> None:
    opts = format_options(ctx)
    formatter = get_formatter(**opts)
    write_results(formatter, results)
