"""runfile: Run the instructions of a task file on many SSH hosts."""

from .config import Config, Defaults, ExecutionPolicy, build_config, load_defaults
from .errors import (
    CommandError,
    ConfigError,
    CredentialError,
    HostConnectionError,
    ParseError,
    RunError,
    RunfileError,
    TaskExecutionError,
    TransportError,
    UploadError,
)
from .hosts import normalize_host, normalize_hosts
from .orchestrator import HostResult, HostStatus, Orchestrator, RunResult, run, run_sync
from .parser import parse, parse_stream
from .tasks import FileTransfer, Task
from .transport import ConnectionConfig, Session, dial

__all__ = [
    "Config",
    "Defaults",
    "ExecutionPolicy",
    "build_config",
    "load_defaults",
    "RunfileError",
    "ParseError",
    "ConfigError",
    "CredentialError",
    "TransportError",
    "HostConnectionError",
    "TaskExecutionError",
    "UploadError",
    "CommandError",
    "RunError",
    "normalize_host",
    "normalize_hosts",
    "Orchestrator",
    "HostResult",
    "HostStatus",
    "RunResult",
    "run",
    "run_sync",
    "parse",
    "parse_stream",
    "FileTransfer",
    "Task",
    "ConnectionConfig",
    "Session",
    "dial",
]
