"""Configuration for runfile."""

from __future__ import annotations

import getpass
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .hosts import DEFAULT_PORT

DEFAULT_TASK_FILE = "./Runfile"
DEFAULT_KEY_FILE = "~/.ssh/id_rsa"
PASSWORD_ENV = "RUNFILE_PASSWORD"


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "root"


@dataclass
class ExecutionPolicy:
    """How tasks are dispatched across hosts."""

    parallel: bool = False
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False


@dataclass
class Defaults:
    """Default values that can be overridden on the command line."""

    user: str = field(default_factory=_current_user)
    port: str = DEFAULT_PORT
    key_file: Path = field(default_factory=lambda: Path(DEFAULT_KEY_FILE).expanduser())
    task_file: str = DEFAULT_TASK_FILE
    password: str | None = None
    known_hosts: str | None = None
    connect_timeout: float | None = None
    log_dir: Path | None = None
    parallel: bool = False
    hosts: list[str] = field(default_factory=list)


@dataclass
class Config:
    """Everything a single run needs."""

    hosts: list[str]
    task_file: str = DEFAULT_TASK_FILE
    key_file: Path = field(default_factory=lambda: Path(DEFAULT_KEY_FILE).expanduser())
    user: str = field(default_factory=_current_user)
    port: str = DEFAULT_PORT
    password: str | None = None
    passphrase: str | None = None
    known_hosts: str | None = None
    connect_timeout: float | None = None
    log_dir: Path | None = None
    parallel: bool = False
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False
    source_path: Path | None = None  # Path to the YAML defaults file, if any

    @property
    def policy(self) -> ExecutionPolicy:
        return ExecutionPolicy(
            parallel=self.parallel,
            dry_run=self.dry_run,
            verbose=self.verbose,
            quiet=self.quiet,
        )


def load_defaults(config_path: str | Path) -> Defaults:
    """Load defaults from a YAML file."""
    config_path = Path(config_path).expanduser().resolve()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    return _parse_defaults(raw)


def _parse_defaults(raw: dict[str, Any]) -> Defaults:
    """Parse the defaults and hosts sections."""
    defaults_raw = raw.get("defaults") or {}
    if not isinstance(defaults_raw, dict):
        raise ConfigError("'defaults' must be a mapping")

    hosts = raw.get("hosts") or []
    if not isinstance(hosts, list):
        raise ConfigError("'hosts' must be a list")

    base = Defaults()
    log_dir = _string(defaults_raw, "log_dir")
    return Defaults(
        user=_string(defaults_raw, "user") or base.user,
        port=str(defaults_raw.get("port", base.port)),
        key_file=Path(_string(defaults_raw, "key_file") or DEFAULT_KEY_FILE).expanduser(),
        task_file=_string(defaults_raw, "task_file") or base.task_file,
        password=_string(defaults_raw, "password"),
        known_hosts=_string(defaults_raw, "known_hosts"),
        connect_timeout=_number(defaults_raw, "connect_timeout"),
        log_dir=Path(log_dir).expanduser().resolve() if log_dir else None,
        parallel=bool(defaults_raw.get("parallel", False)),
        hosts=[str(h) for h in hosts],
    )


def _string(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _number(raw: dict[str, Any], key: str) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number")
    return float(value)


def build_config(
    defaults: Defaults | None = None,
    *,
    hosts: list[str] | None = None,
    task_file: str | None = None,
    key_file: str | Path | None = None,
    user: str | None = None,
    port: str | None = None,
    log_dir: str | Path | None = None,
    parallel: bool = False,
    dry_run: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    source_path: Path | None = None,
) -> Config:
    """Merge explicit options over ``defaults`` into a :class:`Config`."""
    defaults = defaults or Defaults()

    hosts = hosts or defaults.hosts
    if not hosts:
        raise ConfigError("No hosts given")

    password = os.environ.get(PASSWORD_ENV) or defaults.password

    return Config(
        hosts=list(hosts),
        task_file=task_file or defaults.task_file,
        key_file=Path(key_file).expanduser() if key_file else defaults.key_file,
        user=user or defaults.user,
        port=port or defaults.port,
        password=password,
        known_hosts=defaults.known_hosts,
        connect_timeout=defaults.connect_timeout,
        log_dir=Path(log_dir).expanduser().resolve() if log_dir else defaults.log_dir,
        parallel=parallel or defaults.parallel,
        dry_run=dry_run,
        verbose=verbose,
        quiet=quiet,
        source_path=source_path,
    )
