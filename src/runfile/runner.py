#!/usr/bin/env python3
"""Main entry point for runfile."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import DEFAULT_TASK_FILE, Config, build_config, load_defaults
from .credentials import resolve_auth
from .errors import ConfigError, CredentialError, ParseError, RunError
from .hosts import normalize_hosts
from .orchestrator import HostStatus, RunResult, run
from .parser import parse
from .transport import ConnectionConfig, dial

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"

# ANSI colors for different hosts
HOST_COLORS = [
    "\033[36m",  # Cyan
    "\033[33m",  # Yellow
    "\033[35m",  # Magenta
    "\033[32m",  # Green
    "\033[34m",  # Blue
    "\033[91m",  # Light Red
    "\033[96m",  # Light Cyan
    "\033[93m",  # Light Yellow
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="runfile",
        description="Run the commands and uploads of a task file on remote hosts over SSH",
    )
    parser.add_argument("hosts", nargs="*", help="Hosts to configure (host or host:port)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only report the final result")
    parser.add_argument(
        "-f",
        "--file",
        dest="task_file",
        help=f"Specify an alternative task file, '-' for stdin (default: {DEFAULT_TASK_FILE})",
    )
    parser.add_argument(
        "-i", "--key", dest="key_file", help="SSH private key to use (default: ~/.ssh/id_rsa)"
    )
    parser.add_argument("-p", "--parallel", action="store_true", help="Execute tasks in parallel")
    parser.add_argument(
        "-d",
        "--dryrun",
        dest="dry_run",
        action="store_true",
        help="Print tasks to be executed without actually executing any tasks",
    )
    parser.add_argument("--port", help="Define an alternate SSH port (default: 22)")
    parser.add_argument("-u", "--user", help="Remote host username (default: current user)")
    parser.add_argument("-c", "--config", type=Path, help="YAML file with default settings")
    parser.add_argument("--log-dir", type=Path, help="Write per-host logs under this directory")
    parser.add_argument("--dashboard", action="store_true", help="Run with the TUI dashboard")
    return parser


def error(message: str) -> None:
    print(f"{RED}{message}{RESET}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        defaults = load_defaults(args.config) if args.config else None
        config = build_config(
            defaults,
            hosts=args.hosts,
            task_file=args.task_file,
            key_file=args.key_file,
            user=args.user,
            port=args.port,
            log_dir=args.log_dir,
            parallel=args.parallel,
            dry_run=args.dry_run,
            verbose=args.verbose,
            quiet=args.quiet,
            source_path=args.config,
        )
    except FileNotFoundError as e:
        error(f"Error: {e}")
        return 1
    except ConfigError as e:
        error(f"Configuration error: {e}")
        return 1

    if config.verbose and not config.quiet:
        print(f"{YELLOW}SSH User: {config.user}{RESET}")
        print(f"{YELLOW}Key Path: {config.key_file}{RESET}")
        print(f"{YELLOW}Task file Path: {config.task_file}{RESET}")

    try:
        result = execute(config, dashboard=args.dashboard)
    except CredentialError as e:
        error(f"Error executing: {e}")
        return 1
    except ParseError as e:
        error(f"Error executing: Unable to parse task file - {e}")
        return 1
    except RunError as e:
        error(f"Error executing: {e}")
        return 1

    if result is None:
        error("Execution interrupted")
        return 1

    print(f"{GREEN}Execution completed successfully{RESET}")
    return 0


def execute(config: Config, dashboard: bool = False) -> RunResult | None:
    """Resolve credentials, parse the task file and run it.

    Returns ``None`` when the dashboard was quit before the run finished.
    """
    auth = {} if config.dry_run else resolve_auth(config)
    connection = ConnectionConfig(
        user=config.user,
        known_hosts=config.known_hosts,
        connect_timeout=config.connect_timeout,
        **auth,
    )

    tasks = parse(config.task_file)
    hosts = normalize_hosts(config.hosts, config.port)
    options = {
        "policy": config.policy,
        "log_dir": config.log_dir,
        "task_file": config.task_file,
        "port": config.port,
    }

    if dashboard:
        return _run_dashboard(tasks, hosts, connection, options)

    on_output, on_status = _headless_callbacks(hosts, quiet=config.quiet)
    return asyncio.run(
        run(tasks, hosts, dial, connection, on_output=on_output, on_status=on_status, **options)
    )


def _run_dashboard(tasks, hosts, connection, options) -> RunResult | None:
    from .dashboard import Dashboard

    app = Dashboard(tasks, hosts, dial, connection, **options)
    app.run()

    if app.result is not None and not app.result.ok:
        raise RunError(app.result)
    return app.result


def _headless_callbacks(hosts: list[str], quiet: bool = False):
    """Build output callbacks that print colored, host-prefixed lines."""
    host_colors = {host: HOST_COLORS[i % len(HOST_COLORS)] for i, host in enumerate(hosts)}

    def on_output(host: str, line: str) -> None:
        if quiet:
            return
        color = host_colors.get(host, "")
        if line.startswith("ERROR:"):
            print(f"{color}[{host}]{RESET} {RED}{line}{RESET}")
        else:
            print(f"{color}[{host}]{RESET} {line}")

    def on_status(host: str, status: HostStatus) -> None:
        if quiet or status in (HostStatus.PENDING, HostStatus.CONNECTING):
            return
        color = host_colors.get(host, "")
        print(f"{color}[{host}]{RESET} Status: {status.value}")

    return on_output, on_status


if __name__ == "__main__":
    sys.exit(main())
