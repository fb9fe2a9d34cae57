"""Shared fixtures for runfile tests."""

from __future__ import annotations

import asyncio

import pytest

from runfile.errors import CommandError, HostConnectionError, UploadError
from runfile.tasks import FileTransfer, Task
from runfile.transport import ConnectionConfig


class FakeSession:
    """In-memory session that records every call in a shared event log."""

    def __init__(self, address: str, events: list, fail_on: set[str], delay: float):
        self.address = address
        self.events = events
        self.fail_on = fail_on
        self.delay = delay
        self.closed = False

    async def run(self, command: str) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.events.append((self.address, "run", command))
        if (self.address, command) in self.fail_on or command in self.fail_on:
            raise CommandError(command, 1, "boom")
        return f"ran {command}\n"

    async def put(self, file: FileTransfer) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.events.append((self.address, "put", file.source))
        if file.source in self.fail_on:
            raise UploadError(file, "no such file")

    async def close(self) -> None:
        self.events.append((self.address, "close", None))
        self.closed = True


class FakeDialer:
    """Dialer returning :class:`FakeSession` objects."""

    def __init__(self, unreachable=(), fail_on=(), delay: float = 0.0):
        self.unreachable = set(unreachable)
        self.fail_on = set(fail_on)
        self.delay = delay
        self.events: list = []
        self.sessions: dict[str, FakeSession] = {}

    async def __call__(self, config: ConnectionConfig) -> FakeSession:
        self.events.append((config.address, "dial", config.user))
        if self.delay:
            await asyncio.sleep(self.delay)
        if config.address in self.unreachable:
            raise HostConnectionError(config.address, "Connection refused")
        session = FakeSession(config.address, self.events, self.fail_on, self.delay)
        self.sessions[config.address] = session
        return session

    def for_host(self, address: str) -> list:
        return [e for e in self.events if e[0] == address]


@pytest.fixture
def dialer() -> FakeDialer:
    return FakeDialer()


@pytest.fixture
def connection() -> ConnectionConfig:
    return ConnectionConfig(user="deploy", password="secret")


@pytest.fixture
def tasks() -> list[Task]:
    return [
        Task.run("RUN uptime", "uptime"),
        Task.put("PUT ./a.sh /tmp/a.sh 0755", FileTransfer("./a.sh", "/tmp/a.sh", 0o755)),
        Task.script(
            "RUN SCRIPT ./setup.sh",
            FileTransfer("./setup.sh", "/tmp/x", 0o700),
            "/tmp/x; rm /tmp/x",
        ),
    ]


@pytest.fixture
def make_dialer():
    """Factory for dialers with unreachable hosts or failing tasks."""
    return FakeDialer
