"""Configuration management CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from ora_tool.cli.commands._shared import get_resolved_config
from ora_tool.core.config import DEFAULT_CONFIG_PATH, load_config

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration management commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _mask_password(value: str | None) -> str:
    if value is None:
        return "not set"
    return "***"


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved configuration with source attribution."""
    config_path: Path | None = ctx.ensure_object(dict).get("config_file")
    resolved = get_resolved_config(ctx)
    sources = resolved.sources

    typer.echo("Connection Settings (resolved):")
    connection_fields = [
        ("host", "host", resolved.host),
        ("port", "port", str(resolved.port)),
        ("service", "service_name", resolved.service_name),
        ("connect_string", "connect_string", resolved.connect_string or "not set"),
        ("user", "user", resolved.user or "not set"),
        ("password", "password", _mask_password(resolved.password)),
    ]
    for label, source_key, value in connection_fields:
        source = sources.get(source_key, "default")
        typer.echo(f"  {label}: {value} ({source})")
    typer.echo(f"  descriptor: {resolved.connect_descriptor}")

    typer.echo("")
    typer.echo("Session:")
    options = resolved.session_options()
    session_fields = [
        ("privilege", "privilege", str(options.privilege)),
        ("pooled", "pool", str(options.pooled).lower()),
        ("auto_commit", "auto_commit", str(options.auto_commit).lower()),
        ("thick_mode", "thick_mode", str(options.thick_mode).lower()),
        (
            "max_rows",
            "preview_limit",
            str(options.max_rows) if options.max_rows else "unlimited",
        ),
    ]
    for label, source_key, value in session_fields:
        source = sources.get(source_key, "default")
        typer.echo(f"  {label}: {value} ({source})")

    typer.echo("")
    typer.echo("General:")
    format_source = sources.get("default_format", "default")
    typer.echo(f"  format: {resolved.default_format} ({format_source})")

    typer.echo("")
    if resolved.active_profile:
        typer.echo(f"Active Profile: {resolved.active_profile}")
    else:
        typer.echo("Active Profile: none")

    display_path = config_path or DEFAULT_CONFIG_PATH
    typer.echo(f"Config File: {display_path}")


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List available connection profiles."""
    config_path: Path | None = ctx.ensure_object(dict).get("config_file")
    app_config = load_config(config_path)
    active_profile = ctx.obj.get("profile") or None

    if not app_config.profiles:
        typer.echo("No profiles configured.")
        display_path = config_path or DEFAULT_CONFIG_PATH
        typer.echo(f"Add profiles to: {display_path}")
        return

    typer.echo("Available Profiles:")
    typer.echo("")
    for name, profile in sorted(app_config.profiles.items()):
        is_active = name == active_profile
        marker = "* " if is_active else "  "
        label = " (active)" if is_active else ""
        typer.echo(f"{marker}{name}{label}")

        display_fields = [("descriptor", profile.connect_descriptor)]
        if profile.user:
            display_fields.append(("user", profile.user))
        if profile.privilege != "Normal":
            display_fields.append(("privilege", str(profile.privilege)))
        if not profile.pool:
            display_fields.append(("pool", "false"))

        for field_name, value in display_fields:
            typer.echo(f"      {field_name}: {value}")
        typer.echo("")
