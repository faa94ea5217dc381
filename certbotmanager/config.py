"""Configuration loading: command-line flags, environment variables and the config file."""

from __future__ import annotations

import argparse
import json
import os
import sys
import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

ENV_PREFIX = "CERTBOT_MANAGER"

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_BOOL_FIELDS = frozenset({"staging", "no_eff_email", "initial_force_renewal"})
_INT_FIELDS = frozenset({"dns_propagation_seconds"})
_LIST_FIELDS = frozenset({"domains"})


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is invalid."""


@dataclass(frozen=True)
class Defaults:
    """Built-in default settings."""

    staging: bool = True
    no_eff_email: bool = True
    cmd: str = "certonly"
    config_file_path: str = "./config.toml"
    certbot_path: str = "certbot"
    log_level: str = "info"


DEFAULTS = Defaults()


@dataclass
class CommonConfigs:
    """Settings that may be given globally or per certificate."""

    cmd: str = ""
    email: str = ""
    webroot_path: str = ""
    staging: bool | None = None
    no_eff_email: bool | None = None
    key_type: str = ""
    initial_force_renewal: bool | None = None
    args: str = ""
    authenticator: str = ""
    dns_propagation_seconds: int | None = None
    cloudflare_credentials_path: str = ""
    duckdns_token: str = ""


@dataclass
class Globals(CommonConfigs):
    """Global settings, shared by every certificate."""

    renewal_cron: str = ""


@dataclass
class Certificate(CommonConfigs):
    """A single certificate request."""

    domains: list[str] = field(default_factory=list)


@dataclass
class Config:
    """The whole application configuration."""

    globals: Globals = field(default_factory=Globals)
    certificates: list[Certificate] = field(default_factory=list)
    certbot_path: str = DEFAULTS.certbot_path
    log_level: str = DEFAULTS.log_level


def _unmarshal_error(key: str, expected: str, value: Any) -> ConfigError:
    return ConfigError(
        f"failed to unmarshal configuration: '{key}' expected {expected}, got {value!r}"
    )


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value == "":
            return False
        if value in _TRUE_WORDS:
            return True
        if value in _FALSE_WORDS:
            return False
    raise _unmarshal_error(key, "a bool", value)


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        if value == "":
            return 0
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise _unmarshal_error(key, "an integer", value)


def _to_str(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    raise _unmarshal_error(key, "a string", value)


def _to_str_list(key: str, value: Any) -> list[str]:
    if isinstance(value, (str, int, float, bool)):
        return [_to_str(key, value)]
    if isinstance(value, Sequence):
        return [_to_str(key, item) for item in value]
    raise _unmarshal_error(key, "a list of strings", value)


def _lower_keys(table: Mapping[str, Any]) -> dict[str, Any]:
    return {str(key).lower(): value for key, value in table.items()}


def _decode(cls: type, table: Any, where: str) -> Any:
    if not isinstance(table, Mapping):
        raise _unmarshal_error(where, "a table", table)
    lowered = _lower_keys(table)
    kwargs: dict[str, Any] = {}
    for spec in fields(cls):
        value = lowered.get(spec.name)
        if value is None:
            continue
        key = f"{where}.{spec.name}"
        if spec.name in _BOOL_FIELDS:
            kwargs[spec.name] = _to_bool(key, value)
        elif spec.name in _INT_FIELDS:
            kwargs[spec.name] = _to_int(key, value)
        elif spec.name in _LIST_FIELDS:
            kwargs[spec.name] = _to_str_list(key, value)
        else:
            kwargs[spec.name] = _to_str(key, value)
    return cls(**kwargs)


def global_env_bindings(prefix: str = ENV_PREFIX) -> dict[str, str]:
    """Map each environment variable that overrides a global setting to its key."""
    base = f"{prefix}_GLOBALS"
    return {f"{base}_{spec.name.upper()}": spec.name for spec in fields(Globals)}


def apply_env_overrides(data: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of the raw configuration with global values taken from the environment."""
    result = _lower_keys(data)
    existing = result.get("globals", {})
    if not isinstance(existing, Mapping):
        raise _unmarshal_error("globals", "a table", existing)
    merged = _lower_keys(existing)
    for env_name, key in global_env_bindings(ENV_PREFIX).items():
        value = environ.get(env_name)
        if value:
            merged[key] = value
    result["globals"] = merged
    return result


def build_config(
    data: Mapping[str, Any],
    certbot_path: str = DEFAULTS.certbot_path,
    log_level: str = DEFAULTS.log_level,
) -> Config:
    """Turn a raw configuration mapping into a validated Config."""
    raw = _lower_keys(data)

    raw_globals = raw.get("globals", {})
    if not isinstance(raw_globals, Mapping):
        raise _unmarshal_error("globals", "a table", raw_globals)
    globals_table = _lower_keys(raw_globals)
    globals_table.setdefault("staging", DEFAULTS.staging)
    globals_table.setdefault("no_eff_email", DEFAULTS.no_eff_email)
    globals_table.setdefault("cmd", DEFAULTS.cmd)
    globals_ = _decode(Globals, globals_table, "globals")

    raw_certs = raw.get("certificate", [])
    if isinstance(raw_certs, Mapping):
        raw_certs = [raw_certs]
    elif isinstance(raw_certs, (str, bytes)) or not isinstance(raw_certs, Sequence):
        raise _unmarshal_error("certificate", "a list of tables", raw_certs)
    certificates = [
        _decode(Certificate, entry, f"certificate[{position}]")
        for position, entry in enumerate(raw_certs)
    ]

    if not globals_.renewal_cron:
        raise ConfigError("globals.RenewalCron is empty")

    return Config(
        globals=globals_,
        certificates=certificates,
        certbot_path=certbot_path,
        log_level=log_level,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="certbot-manager",
        description=(
            "Certbot Manager: Manages Let's Encrypt certificates "
            "using webroot or DNS challenges."
        ),
        epilog=(
            "Environment Variables:\n"
            f"  {ENV_PREFIX}_* : Can override config values "
            f"(e.g., {ENV_PREFIX}_GLOBALS_EMAIL)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULTS.config_file_path,
        help="Path to the configuration file (e.g., /app/config.toml)",
    )
    parser.add_argument(
        "--certbot-path",
        default=None,
        help=f"Path to the certbot executable (default {DEFAULTS.certbot_path!r})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=(
            "Logging level (debug, info, warn, error, fatal, panic) "
            f"(default {DEFAULTS.log_level!r})"
        ),
    )
    return parser


def _read_config_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        elif suffix == ".toml":
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        else:
            raise ConfigError(
                f"failed to read config file '{path}': unsupported config type {suffix!r}"
            )
    except (OSError, ValueError) as exc:
        raise ConfigError(f"failed to read config file '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"failed to read config file '{path}': top level is not a table")
    return data


def _resolve_setting(
    flag_value: str | None,
    env_name: str,
    environ: Mapping[str, str],
    data: Mapping[str, Any],
    key: str,
    default: str,
) -> str:
    if flag_value is not None:
        return flag_value
    env_value = environ.get(env_name)
    if env_value:
        return env_value
    file_value = data.get(key)
    if file_value is not None:
        return _to_str(key, file_value)
    return default


def load(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Parse flags, read the config file, apply environment overrides and validate."""
    if environ is None:
        environ = os.environ
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else list(argv))

    config_path = Path(args.config)
    try:
        config_path.stat()
    except FileNotFoundError as exc:
        raise ConfigError(f"config file '{args.config}' not found") from exc
    except OSError as exc:
        raise ConfigError(f"error checking config file '{args.config}': {exc}") from exc

    data = apply_env_overrides(_read_config_file(config_path), environ)

    certbot_path = _resolve_setting(
        args.certbot_path,
        f"{ENV_PREFIX}_CERTBOTPATH",
        environ,
        data,
        "certbotpath",
        DEFAULTS.certbot_path,
    )
    log_level = _resolve_setting(
        args.log_level,
        f"{ENV_PREFIX}_LOGLEVEL",
        environ,
        data,
        "loglevel",
        DEFAULTS.log_level,
    )
    return build_config(data, certbot_path, log_level)