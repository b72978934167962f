from __future__ import annotations

import sys
from typing import Annotated

import typer

from ora_tool.cli.commands._shared import get_client, output_results
from ora_tool.core.exceptions import InputError
from ora_tool.core.exit_codes import ExitCode
from ora_tool.core.query_source import resolve_query_source
from ora_tool.core.splitter import split


def _read_script(ctx: typer.Context, file: str | None, execute: str | None) -> str:
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        return resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL/PLSQL script to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL/PLSQL"),
    ] = None,
    auto_commit: Annotated[
        bool | None,
        typer.Option(
            "--auto-commit/--no-auto-commit", help="Commit after each statement"
        ),
    ] = None,
    max_rows: Annotated[
        int | None,
        typer.Option("--max-rows", "-m", help="Fetch at most N rows per query"),
    ] = None,
) -> None:
    """Execute a SQL/PLSQL script from file, inline (-e), or stdin.

    The script is split into statements which run in order; execution
    stops at the first failing statement.
    """
    sql = _read_script(ctx, file, execute)

    with get_client(ctx, auto_commit=auto_commit, max_rows=max_rows) as client:
        results = client.run(sql)

    if results and results[-1].error:
        for message in results[-1].messages:
            typer.echo(message.rstrip("\n"), err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output_results(ctx, results)


def split_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL/PLSQL script to split"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Split inline SQL/PLSQL"),
    ] = None,
) -> None:
    """Print the statements a script splits into, without connecting.

    Plain statements end with ';', PL/SQL units with a '/' line, so the
    output splits back into the same statements.
    """
    sql = _read_script(ctx, file, execute)
    for statement in split(sql):
        if statement.endswith(";"):
            typer.echo(f"{statement}\n/")
        else:
            typer.echo(f"{statement};")
