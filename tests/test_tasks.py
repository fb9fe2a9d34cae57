"""Tests for task value types."""

import dataclasses

import pytest

from runfile.tasks import FileTransfer, Task


class TestTask:
    """Task shapes."""

    def test_command_only(self) -> None:
        task = Task.run("RUN ls", "ls")
        assert task.command == "ls"
        assert task.file is None
        assert not task.is_script

    def test_file_only(self) -> None:
        task = Task.put("PUT a b 0644", FileTransfer("a", "b", 0o644))
        assert task.command is None
        assert not task.is_script

    def test_script(self) -> None:
        task = Task.script("RUN SCRIPT a", FileTransfer("a", "/tmp/x", 0o700), "/tmp/x; rm /tmp/x")
        assert task.is_script

    def test_empty_task_rejected(self) -> None:
        with pytest.raises(ValueError):
            Task(raw="RUN")

    def test_immutable(self) -> None:
        task = Task.run("RUN ls", "ls")
        with pytest.raises(dataclasses.FrozenInstanceError):
            task.command = "rm -rf /"


def test_file_transfer_str() -> None:
    assert str(FileTransfer("a", "b", 0o755)) == "a -> b (0755)"
