"""Exceptions raised by runfile."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .orchestrator import RunResult
    from .tasks import FileTransfer, Task


class RunfileError(Exception):
    """Base class for all runfile errors."""


class ParseError(RunfileError):
    """The task file was rejected.

    ``tasks`` holds whatever was parsed before the offending line. It is
    only there for diagnostics and must never be executed.
    """

    def __init__(
        self,
        message: str,
        tasks: list[Task] | None = None,
        line_number: int | None = None,
        line: str | None = None,
    ):
        self.tasks = list(tasks or [])
        self.line_number = line_number
        self.line = line
        super().__init__(message)


class ConfigError(RunfileError):
    """Invalid configuration."""


class CredentialError(RunfileError):
    """Unable to load SSH credentials."""


class TransportError(RunfileError):
    """Base class for errors raised by a transport session."""


class HostConnectionError(TransportError):
    """Failed to open a session to a host."""

    def __init__(self, address: str, original_error: Exception | str):
        self.address = address
        self.original_error = original_error
        super().__init__(f"Cannot connect to {address}: {original_error}")


class TaskExecutionError(TransportError):
    """A task failed on a connected host."""


class UploadError(TaskExecutionError):
    """Uploading a file failed."""

    def __init__(self, file: FileTransfer, reason: Exception | str):
        self.file = file
        self.reason = reason
        super().__init__(f"Error uploading {file.source} to {file.destination} - {reason}")


class CommandError(TaskExecutionError):
    """A remote command failed or exited non-zero."""

    def __init__(self, command: str, exit_status: int | None = None, stderr: str = ""):
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        if exit_status is None:
            message = f"Command failed: {command}"
        else:
            message = f"Command exited with status {exit_status}: {command}"
        if stderr:
            message = f"{message} - {stderr.strip()}"
        super().__init__(message)


class RunError(RunfileError):
    """One or more hosts failed."""

    def __init__(self, result: RunResult):
        self.result = result
        super().__init__(
            f"Execution failed with {result.failures} errors "
            f"({', '.join(result.failed_hosts)})"
        )
