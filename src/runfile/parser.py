"""Runfile parser.

Reads a task file line by line and turns each instruction into a
:class:`~runfile.tasks.Task`. Supported instructions::

    # comment
    RUN <command>
    RUN CMD <command>        (legacy)
    RUN SCRIPT <local path>  (legacy, upload + run + remove)
    PUT <source> <destination> <mode>
"""

from __future__ import annotations

import itertools
import logging
import os
import random
import re
import string
import sys
from collections.abc import Iterable
from pathlib import Path

from .errors import ParseError
from .tasks import FileTransfer, Task

logger = logging.getLogger(__name__)

STDIN = "-"
SCRIPT_DIR = "/tmp"
SCRIPT_MODE = 0o700

# Matches all RUN instructions
IS_RUN = re.compile(r"^RUN .*$")
# Matches the older RUN CMD / RUN SCRIPT syntax
IS_OLD_RUN = re.compile(r"^RUN (CMD|SCRIPT) (.*)$")
# Matches PUT instructions
IS_PUT = re.compile(r"^PUT .* \d{3,4}$", re.ASCII)
# Matches comments
IS_COMMENT = re.compile(r"^#.*")

_name_counter = itertools.count(1)


def temp_name() -> str:
    """Return a file name that is unique within this process."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"runfile-{os.getpid()}-{next(_name_counter)}-{suffix}"


def parse(source: str | Path) -> list[Task]:
    """Parse the task file at ``source``, or standard input for ``"-"``."""
    if str(source) == STDIN:
        logger.debug("Reading task file from stdin")
        return parse_stream(sys.stdin)

    try:
        f = open(source, encoding="utf-8")
    except OSError as e:
        raise ParseError(f"could not read task file - {e}") from e

    logger.debug("Reading task file from %s", source)
    with f:
        return parse_stream(f)


def parse_stream(stream: Iterable[str]) -> list[Task]:
    """Parse task lines from any iterable of text lines.

    Raises:
        ParseError: On the first bad line. Tasks parsed before it are
            attached to the error.
    """
    tasks: list[Task] = []
    lines = iter(stream)
    line_number = 0

    while True:
        try:
            text = next(lines)
        except StopIteration:
            break
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"error parsing task file - {e}", tasks=tasks) from e

        line_number += 1
        line = text.strip()
        if not line or IS_COMMENT.match(line):
            continue

        task = _parse_line(line, line_number, tasks)
        logger.debug("Line %d: %r", line_number, task)
        tasks.append(task)

    return tasks


def _parse_line(line: str, line_number: int, tasks: list[Task]) -> Task:
    old_run = IS_OLD_RUN.match(line)
    if old_run:
        keyword, rest = old_run.groups()
        if keyword == "CMD":
            return Task.run(line, rest)
        destination = f"{SCRIPT_DIR}/{temp_name()}"
        return Task.script(
            line,
            FileTransfer(source=rest.strip(), destination=destination, mode=SCRIPT_MODE),
            f"{destination}; rm {destination}",
        )

    if IS_RUN.match(line):
        return Task.run(line, " ".join(line.split()[1:]))

    if IS_PUT.match(line):
        fields = line.split()
        if len(fields) != 4:
            raise ParseError(
                f"PUT definition on line {line_number} is incorrect",
                tasks=tasks,
                line_number=line_number,
                line=line,
            )
        _, source, destination, mode = fields
        try:
            value = int(mode, 8)
        except ValueError as e:
            raise ParseError(
                f"could not convert mode value to integer on line {line_number} - {mode}",
                tasks=tasks,
                line_number=line_number,
                line=line,
            ) from e
        return Task.put(line, FileTransfer(source=source, destination=destination, mode=value))

    raise ParseError(
        f"Unable to parse task file line {line}",
        tasks=tasks,
        line_number=line_number,
        line=line,
    )
