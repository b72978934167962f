"""Configuration management for ORA Tool.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--host, --port, --privilege, etc.)
2. --dsn flag (parsed into components)
3. Environment variables (ORA_HOST, ORA_PORT, ORA_SERVICE, ORA_USER,
   ORA_PASSWORD, ORA_CONNECT_STRING)
4. Named profile (--profile or ORA_PROFILE env var)
5. Config file defaults
6. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from enum import StrEnum
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import BaseModel, computed_field, field_validator, model_validator

from ora_tool.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "ora-tool" / "config.toml"

_DSN_SCHEMES = ("oracle", "oracle+oracledb")

_ORA_ENV_VARS: dict[str, str] = {
    "ORA_HOST": "host",
    "ORA_PORT": "port",
    "ORA_SERVICE": "service_name",
    "ORA_USER": "user",
    "ORA_PASSWORD": "password",  # pragma: allowlist secret
    "ORA_CONNECT_STRING": "connect_string",
}

_PROFILE_DEFAULTS: dict[str, Any] = {
    "host": "localhost",
    "port": 1521,
    "service_name": "FREEPDB1",
    "connect_string": None,
    "user": None,
    "password": None,
    "auto_commit": False,
    "lower_case": False,
    "macro_file": None,
    "thick_mode": False,
    "limit_prefetch_rows": False,
    "preview_limit": 50,
    "privilege": "Normal",
    "pool": True,
}


class Privilege(StrEnum):
    """Administrative privilege a standalone session connects with."""

    NORMAL = "Normal"
    SYSDBA = "SYSDBA"
    SYSOPER = "SYSOPER"
    SYSASM = "SYSASM"
    SYSBACKUP = "SYSBACKUP"
    SYSDG = "SYSDG"
    SYSKM = "SYSKM"
    SYSPRELIM = "SYSPRELIM"
    SYSRAC = "SYSRAC"

    @classmethod
    def _missing_(cls, value: object) -> Privilege | None:
        if isinstance(value, str):
            for member in cls:
                if member.value.upper() == value.upper():
                    return member
        return None


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Supports oracle:// and oracle+oracledb:// URLs.

    The path is the service name; ``?mode=sysdba`` sets the privilege.
    """
    parsed = urlparse(dsn)
    if parsed.scheme not in _DSN_SCHEMES:
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected 'oracle' or 'oracle+oracledb'"
        raise ConfigError(msg)

    result: dict[str, Any] = {}
    if parsed.hostname:
        result["host"] = parsed.hostname
    if parsed.port:
        result["port"] = parsed.port
    if parsed.path and parsed.path.strip("/"):
        result["service_name"] = parsed.path.strip("/")
    if parsed.username:
        result["user"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    query_params = parse_qs(parsed.query)
    if "mode" in query_params:
        result["privilege"] = query_params["mode"][0]
    return result


class SessionOptions(BaseModel):
    """Session-scoped options applied to every batch call."""

    auto_commit: bool = False
    lower_case: bool = False
    macro_file: str | None = None
    thick_mode: bool = False
    max_rows: int | None = None
    privilege: Privilege = Privilege.NORMAL
    pooled: bool = True

    @model_validator(mode="after")
    def elevated_sessions_are_standalone(self) -> SessionOptions:
        if self.privilege is not Privilege.NORMAL and self.pooled:
            self.pooled = False
        return self


class Credentials(BaseModel):
    user: str | None = None
    password: str | None = None
    connect_string: str
    connection_id: str


class OraProfile(BaseModel):
    dsn: str | None = None
    host: str = "localhost"
    port: int = 1521
    service_name: str = "FREEPDB1"
    connect_string: str | None = None
    user: str | None = None
    password: str | None = None
    auto_commit: bool = False
    lower_case: bool = False
    macro_file: str | None = None
    thick_mode: bool = False
    limit_prefetch_rows: bool = False
    preview_limit: int = 50
    privilege: Privilege = Privilege.NORMAL
    pool: bool = True

    @model_validator(mode="before")
    @classmethod
    def parse_dsn_into_components(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dsn"):
            dsn_fields = parse_dsn(data["dsn"])
            for key, value in dsn_fields.items():
                if key not in data:
                    data[key] = value
        return data

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            msg = f"Invalid port: {v}. Must be 1-65535"
            raise ValueError(msg)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def connect_descriptor(self) -> str:
        if self.connect_string:
            return self.connect_string
        return f"{self.host}:{self.port}/{self.service_name}"


class AppConfig(BaseModel):
    default_format: str = "table"
    default_profile: str | None = None
    profiles: dict[str, OraProfile] = {}


class ResolvedConfig(BaseModel):
    host: str = "localhost"
    port: int = 1521
    service_name: str = "FREEPDB1"
    connect_string: str | None = None
    user: str | None = None
    password: str | None = None
    auto_commit: bool = False
    lower_case: bool = False
    macro_file: str | None = None
    thick_mode: bool = False
    limit_prefetch_rows: bool = False
    preview_limit: int = 50
    privilege: Privilege = Privilege.NORMAL
    pool: bool = True
    default_format: str = "table"
    active_profile: str | None = None
    sources: dict[str, str] = {}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def connect_descriptor(self) -> str:
        if self.connect_string:
            return self.connect_string
        return f"{self.host}:{self.port}/{self.service_name}"

    @property
    def connection_id(self) -> str:
        if self.active_profile:
            return self.active_profile
        return f"{self.user or ''}@{self.connect_descriptor}"

    def credentials(self) -> Credentials:
        return Credentials(
            user=self.user,
            password=self.password,
            connect_string=self.connect_descriptor,
            connection_id=self.connection_id,
        )

    def session_options(self) -> SessionOptions:
        return SessionOptions(
            auto_commit=self.auto_commit,
            lower_case=self.lower_case,
            macro_file=self.macro_file,
            thick_mode=self.thick_mode,
            max_rows=self.preview_limit if self.limit_prefetch_rows else None,
            privilege=self.privilege,
            pooled=self.pool,
        )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > DSN > env > profile > config defaults > built-in defaults.
    """
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {}

    # Layer 1: Built-in defaults
    resolved.update(_PROFILE_DEFAULTS)
    resolved["default_format"] = "table"
    for key in resolved:
        sources[key] = "default"

    # Layer 2: Config file global defaults
    if config.default_format != "table":
        resolved["default_format"] = config.default_format
        sources["default_format"] = "config"

    # Layer 3: Named profile
    effective_profile = profile_name
    if not effective_profile:
        effective_profile = os.environ.get("ORA_PROFILE")
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        for key in profile.model_fields_set:
            if key in ("dsn",):
                continue
            if key in resolved:
                resolved[key] = getattr(profile, key)
                sources[key] = f"profile: {effective_profile}"

    # Layer 4: Environment variables
    for env_var, field_name in _ORA_ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is not None:
            if field_name == "port":
                try:
                    resolved[field_name] = int(value)
                except ValueError:
                    msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
                    raise ConfigError(msg) from None
            else:
                resolved[field_name] = value
            sources[field_name] = f"env: {env_var}"

    # Layer 5: DSN flag
    if dsn:
        dsn_fields = parse_dsn(dsn)
        for key, value in dsn_fields.items():
            if key in resolved:
                resolved[key] = value
                sources[key] = "dsn"

    # Layer 6: CLI flags (highest priority)
    cli_to_field = {
        "host": "host",
        "port": "port",
        "service": "service_name",
        "connect_string": "connect_string",
        "user": "user",
        "password": "password",  # pragma: allowlist secret
        "privilege": "privilege",
        "pool": "pool",
        "thick": "thick_mode",
        "auto_commit": "auto_commit",
        "max_rows": "preview_limit",
    }
    for cli_name, field_name in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            resolved[field_name] = value
            sources[field_name] = f"cli: --{cli_name.replace('_', '-')}"
    if cli_overrides.get("max_rows") is not None:
        resolved["limit_prefetch_rows"] = True
        sources["limit_prefetch_rows"] = "cli: --max-rows"

    resolved["active_profile"] = effective_profile
    resolved["sources"] = sources
    try:
        return ResolvedConfig(**resolved)
    except ValueError as e:
        msg = f"Invalid connection settings: {e}"
        raise ConfigError(msg) from e
