from __future__ import annotations

import dataclasses
from pathlib import Path


@dataclasses.dataclass(frozen=True)
class StartOptions:
    """
    How a temporary postgres server is started.
    """

    # Root data directory to use. If None, one is taken from the pool.
    data_dir: Path | str | None = None
    # True listens on 127.0.0.1, a string on that host. Falsy uses a Unix
    # socket in the data directory.
    host: str | bool | None = None
    # TCP port; an unused one is picked when a host is set.
    port: int | None = None
    # Seconds before the server is stopped automatically, once no client is
    # connected. Zero or negative leaves stopping to the caller.
    timeout: float = 60
    # Keep the data directory after the server stops.
    keep: bool = False
    # Passed to the postgres command as-is.
    postgres_options: str = ""


@dataclasses.dataclass(frozen=True)
class StopOptions:
    """
    How a temporary postgres server is stopped.
    """

    keep: bool = False
    # Seconds between checks for active connections. Zero or negative stops
    # the server even when clients are connected.
    timeout: float = 5
    # Seconds to wait before the first check.
    initial_timeout: float = 0
    # Stop without waiting for connections to close.
    force: bool = False
    host: str | None = None
    port: int | None = None
    # Forward the output of pg_ctl to this process.
    forward_io: bool = False
    verbose: bool = False
