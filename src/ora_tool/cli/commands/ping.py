from __future__ import annotations

import typer

from ora_tool.cli.commands._shared import get_client
from ora_tool.core.exit_codes import ExitCode


def ping_command(ctx: typer.Context) -> None:
    """Check that the database accepts connections and answers a query."""
    with get_client(ctx) as client:
        alive = client.test_connection()
        descriptor = client.credentials.connect_string

    if not alive:
        typer.echo(f"{descriptor}: not reachable", err=True)
        raise typer.Exit(ExitCode.NETWORK_ERROR)
    typer.echo(f"{descriptor}: OK")
