"""SSH transport used by the orchestrator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

import asyncssh

from .errors import CommandError, HostConnectionError, UploadError
from .hosts import split_address

if TYPE_CHECKING:
    from .tasks import FileTransfer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionConfig:
    """Connection settings for one host.

    Exactly one of ``password`` and ``client_key`` is used. ``known_hosts``
    of ``None`` skips host key verification.
    """

    user: str
    address: str = ""
    password: str | None = None
    client_key: asyncssh.SSHKey | None = None
    known_hosts: str | None = None
    connect_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.password is not None and self.client_key is not None:
            raise ValueError("Use either a password or a client key, not both")

    def for_host(self, address: str) -> ConnectionConfig:
        return replace(self, address=address)


class Session(Protocol):
    """An open connection to one host."""

    async def run(self, command: str) -> str: ...

    async def put(self, file: FileTransfer) -> None: ...

    async def close(self) -> None: ...


Dialer = Callable[[ConnectionConfig], Awaitable[Session]]


class SSHSession:
    """:class:`Session` backed by an asyncssh connection."""

    def __init__(self, conn: asyncssh.SSHClientConnection, address: str):
        self._conn = conn
        self.address = address

    async def run(self, command: str) -> str:
        """Run ``command`` and return its stdout."""
        try:
            result = await self._conn.run(command, check=False)
        except asyncssh.Error as e:
            raise CommandError(command, stderr=str(e)) from e

        stdout = result.stdout or ""
        if isinstance(stdout, bytes):
            stdout = stdout.decode("utf-8", errors="replace")

        if result.exit_status != 0:
            stderr = result.stderr or ""
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            raise CommandError(command, result.exit_status, stderr)

        return stdout

    async def put(self, file: FileTransfer) -> None:
        """Upload ``file`` over SFTP and apply its mode."""
        try:
            async with self._conn.start_sftp_client() as sftp:
                await sftp.put(file.source, file.destination)
                await sftp.chmod(file.destination, file.mode)
        except (asyncssh.Error, OSError) as e:
            raise UploadError(file, e) from e

    async def close(self) -> None:
        self._conn.close()
        await self._conn.wait_closed()


async def dial(config: ConnectionConfig) -> SSHSession:
    """Connect to ``config.address`` and return a session."""
    try:
        host, port = split_address(config.address)
    except ValueError as e:
        raise HostConnectionError(config.address, e) from e

    options: dict = {
        "port": port,
        "username": config.user,
        "known_hosts": config.known_hosts,
    }
    if config.connect_timeout is not None:
        options["connect_timeout"] = config.connect_timeout
    if config.password is not None:
        options["password"] = config.password
        options["client_keys"] = None
    elif config.client_key is not None:
        options["client_keys"] = [config.client_key]

    logger.debug("Connecting to %s@%s:%d", config.user, host, port)
    try:
        conn = await asyncssh.connect(host, **options)
    except (asyncssh.Error, OSError, OverflowError, asyncio.TimeoutError) as e:
        raise HostConnectionError(config.address, e) from e

    return SSHSession(conn, config.address)
