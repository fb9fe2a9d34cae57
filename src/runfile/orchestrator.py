"""Runs parsed tasks across many hosts."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable

from .config import ExecutionPolicy
from .errors import HostConnectionError, RunError, TaskExecutionError
from .hosts import DEFAULT_PORT, normalize_host
from .tasks import Task
from .transport import ConnectionConfig, Dialer, Session

logger = logging.getLogger(__name__)


class HostStatus(Enum):
    """Status of a host's execution."""

    PENDING = "pending"
    CONNECTING = "connecting"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class HostResult:
    """Runtime state and outcome for one host."""

    address: str
    status: HostStatus = HostStatus.PENDING
    current_task_index: int = 0
    failed_task_index: int | None = None
    error_message: str = ""
    output_lines: list[str] = field(default_factory=list)
    log_file: Path | None = None

    @property
    def failed(self) -> bool:
        return self.status == HostStatus.FAILED


@dataclass
class RunResult:
    """Outcome of a run, keyed by host address in host-list order."""

    hosts: dict[str, HostResult] = field(default_factory=dict)

    @property
    def failed_hosts(self) -> list[str]:
        return [address for address, host in self.hosts.items() if host.failed]

    @property
    def failures(self) -> int:
        return len(self.failed_hosts)

    @property
    def ok(self) -> bool:
        return self.failures == 0


# Type alias for output callback
OutputCallback = Callable[[str, str], None]  # (host, line) -> None
StatusCallback = Callable[[str, HostStatus], None]  # (host, status) -> None


class Orchestrator:
    """Runs a task list on every host under an execution policy."""

    def __init__(
        self,
        tasks: Sequence[Task],
        hosts: Sequence[str],
        dial: Dialer,
        connection: ConnectionConfig,
        policy: ExecutionPolicy | None = None,
        on_output: OutputCallback | None = None,
        on_status: StatusCallback | None = None,
        log_dir: Path | None = None,
        task_file: str | Path | None = None,
        port: str | int = DEFAULT_PORT,
    ):
        self.tasks = tuple(tasks)
        self.hosts = list(dict.fromkeys(normalize_host(h, port) for h in hosts))
        self.dial = dial
        self.connection = connection
        self.policy = policy or ExecutionPolicy()
        self.on_output = on_output
        self.on_status = on_status
        self.log_dir = log_dir
        self.task_file = task_file
        self.results: dict[str, HostResult] = {}
        self._run_log_dir: Path | None = None

    def _setup_logging(self) -> None:
        """Set up a timestamped log directory for this run."""
        if self.log_dir is None:
            return
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._run_log_dir = Path(self.log_dir) / timestamp
        self._run_log_dir.mkdir(parents=True, exist_ok=True)

        # Keep a copy of the task file next to the host logs
        if self.task_file and Path(self.task_file).is_file():
            shutil.copy(self.task_file, self._run_log_dir / Path(self.task_file).name)

    def _emit_output(self, host: str, line: str) -> None:
        """Emit an output line for a host."""
        state = self.results.get(host)
        if state is not None:
            state.output_lines.append(line)
            if state.log_file:
                with open(state.log_file, "a") as f:
                    f.write(line + "\n")

        if self.on_output:
            self.on_output(host, line)

    def _emit_status(self, host: str, status: HostStatus) -> None:
        """Emit a status change for a host."""
        if host in self.results:
            self.results[host].status = status
        if self.on_status:
            self.on_status(host, status)

    def _fail(self, host: str, message: str, task_index: int | None = None) -> None:
        state = self.results[host]
        state.error_message = message
        state.failed_task_index = task_index
        self._emit_output(host, f"ERROR: {message}")
        self._emit_status(host, HostStatus.FAILED)
        logger.warning("%s: %s", host, message)

    async def run_all(self) -> RunResult:
        """Run the task list on every host and collect the results."""
        self._setup_logging()

        for host in self.hosts:
            log_file = None
            if self._run_log_dir:
                log_file = self._run_log_dir / f"{host.replace(':', '_')}.log"
            self.results[host] = HostResult(address=host, log_file=log_file)

        if self.policy.parallel:
            await asyncio.gather(*(self._run_host(host) for host in self.hosts))
        else:
            for host in self.hosts:
                await self._run_host(host)

        return RunResult(hosts={host: self.results[host] for host in self.hosts})

    async def _run_host(self, host: str) -> None:
        """Run every task on a single host, stopping at the first failure."""
        logger.info("%s: starting %d tasks", host, len(self.tasks))

        if self.policy.dry_run:
            self._emit_status(host, HostStatus.RUNNING)
            for i, task in enumerate(self.tasks):
                self.results[host].current_task_index = i
                self._emit_output(host, f"Executing Task {i} - {task.raw}")
            self._emit_status(host, HostStatus.SUCCESS)
            return

        self._emit_status(host, HostStatus.CONNECTING)
        self._emit_output(host, f"Connecting to {self.connection.user}@{host}...")
        try:
            session = await self.dial(self.connection.for_host(host))
        except HostConnectionError as e:
            self._fail(host, f"Error connecting to host - {e.original_error}")
            return

        try:
            self._emit_status(host, HostStatus.RUNNING)
            for i, task in enumerate(self.tasks):
                self.results[host].current_task_index = i
                self._emit_output(host, f"Executing Task {i} - {task.raw}")
                try:
                    await self._run_task(session, host, task)
                except TaskExecutionError as e:
                    self._fail(host, f"Task {i} failed - {e}", task_index=i)
                    return

            self._emit_output(host, "All tasks completed")
            self._emit_status(host, HostStatus.SUCCESS)
            logger.info("%s: all tasks completed", host)
        finally:
            await session.close()

    async def _run_task(self, session: Session, host: str, task: Task) -> None:
        """Upload then run, whichever parts the task has."""
        if task.file is not None:
            await session.put(task.file)
            self._emit_output(host, "File upload successful")

        if task.command is not None:
            output = await session.run(task.command)
            for line in output.splitlines():
                self._emit_output(host, line.rstrip("\r"))


async def run(
    tasks: Sequence[Task],
    hosts: Sequence[str],
    dial: Dialer,
    connection: ConnectionConfig,
    policy: ExecutionPolicy | None = None,
    **kwargs,
) -> RunResult:
    """Run ``tasks`` on ``hosts``.

    Raises:
        RunError: If any host failed to connect or failed a task.
    """
    orchestrator = Orchestrator(tasks, hosts, dial, connection, policy, **kwargs)
    result = await orchestrator.run_all()
    if not result.ok:
        raise RunError(result)
    return result


def run_sync(*args, **kwargs) -> RunResult:
    """Blocking wrapper around :func:`run`."""
    return asyncio.run(run(*args, **kwargs))
