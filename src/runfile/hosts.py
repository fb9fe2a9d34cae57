"""Host address normalization."""

from __future__ import annotations

import re
from collections.abc import Iterable

DEFAULT_PORT = "22"

# Host already carries a port suffix
HAS_PORT = re.compile(r":\d*$", re.ASCII)


def normalize_host(host: str, port: str | int | None = DEFAULT_PORT) -> str:
    """Append ``:port`` to ``host`` unless it already has a port."""
    host = host.strip()
    if HAS_PORT.search(host):
        return host
    port = str(port) if port not in (None, "") else DEFAULT_PORT
    return f"{host}:{port}"


def normalize_hosts(hosts: Iterable[str], port: str | int | None = DEFAULT_PORT) -> list[str]:
    """Normalize every host, preserving order."""
    return [normalize_host(h, port) for h in hosts]


def split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts. A missing port means 22."""
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, int(DEFAULT_PORT)
    if not port:
        return host, int(DEFAULT_PORT)
    value = int(port)
    if not 0 < value <= 65535:
        raise ValueError(f"Port out of range in {address}")
    return host, value
