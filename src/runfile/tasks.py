"""Task value types produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FileTransfer:
    """A file to upload to every host."""

    source: str
    destination: str
    mode: int

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination} ({self.mode:04o})"


@dataclass(frozen=True)
class Task:
    """One parsed instruction.

    A task carries a command, a file, or both. Both are only set for legacy
    ``RUN SCRIPT`` lines, where the command runs and then removes the
    uploaded file.
    """

    raw: str
    command: str | None = None
    file: FileTransfer | None = None

    def __post_init__(self) -> None:
        if self.command is None and self.file is None:
            raise ValueError(f"Task has neither a command nor a file: {self.raw!r}")

    @classmethod
    def run(cls, raw: str, command: str) -> Task:
        return cls(raw=raw, command=command)

    @classmethod
    def put(cls, raw: str, file: FileTransfer) -> Task:
        return cls(raw=raw, file=file)

    @classmethod
    def script(cls, raw: str, file: FileTransfer, command: str) -> Task:
        return cls(raw=raw, command=command, file=file)

    @property
    def is_script(self) -> bool:
        return self.command is not None and self.file is not None
