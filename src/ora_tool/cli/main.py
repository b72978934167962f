"""ORA Tool main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from ora_tool.__about__ import __version__
from ora_tool.cli.commands.config import config_app
from ora_tool.cli.commands.ping import ping_command
from ora_tool.cli.commands.query import query_command, split_command
from ora_tool.cli.output import OutputFormat  # noqa: TC001
from ora_tool.core.config import Privilege  # noqa: TC001
from ora_tool.core.exceptions import OraToolError
from ora_tool.core.logging import setup_logging
from ora_tool.core.monitoring import setup_sentry

app = typer.Typer(
    help="ORA Tool - Oracle SQL and PL/SQL batch runner",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)
app.command("split")(split_command)
app.command("ping")(ping_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ora-tool {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named connection profile"),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="Database host"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Listener port"),
    ] = None,
    service: Annotated[
        str | None,
        typer.Option("--service", "-s", help="Service name"),
    ] = None,
    connect_string: Annotated[
        str | None,
        typer.Option(
            "--connect-string", "-c", help="Full connect descriptor or TNS alias"
        ),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-U", help="User name"),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", "-W", help="Password"),
    ] = None,
    dsn: Annotated[
        str | None,
        typer.Option("--dsn", help="Connection URL (oracle://user@host:port/service)"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    privilege: Annotated[
        Privilege | None,
        typer.Option(
            "--privilege",
            help="Connect with an administrative privilege (forces --no-pool)",
            case_sensitive=False,
        ),
    ] = None,
    pool: Annotated[
        bool | None,
        typer.Option("--pool/--no-pool", help="Lease sessions from a pool of 4"),
    ] = None,
    thick: Annotated[
        bool,
        typer.Option("--thick", help="Use Oracle Client libraries (thick mode)"),
    ] = False,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    table: Annotated[
        bool,
        typer.Option("--table", help="Shorthand for --format table"),
    ] = False,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (no indentation)"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Column width for table format"),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress header row in CSV output"),
    ] = False,
) -> None:
    """ORA Tool - Oracle SQL and PL/SQL batch runner."""
    setup_logging(verbose)
    setup_sentry()

    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "ora-tool"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["profile"] = profile
    ctx.obj["host"] = host
    ctx.obj["port"] = port
    ctx.obj["service"] = service
    ctx.obj["connect_string"] = connect_string
    ctx.obj["user"] = user
    ctx.obj["password"] = password
    ctx.obj["dsn"] = dsn
    ctx.obj["config_file"] = config_file
    ctx.obj["privilege"] = privilege
    ctx.obj["pool"] = pool
    ctx.obj["thick"] = True if thick else None

    # Format options (global)
    fmt = "table" if table else (format.value if format else None)
    ctx.obj["format"] = fmt
    ctx.obj["compact"] = compact
    ctx.obj["width"] = width
    ctx.obj["no_header"] = no_header


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except OraToolError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
