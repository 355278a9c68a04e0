from __future__ import annotations

from .cluster import IDLE_MARKER, PREFIX, initdb
from .db_config import StartOptions, StopOptions
from .errors import (
    InvalidDataDirectoryError,
    PgTmpError,
    PortAllocationError,
    ToolInvocationError,
    UnknownVersionError,
)
from .instance import PgTmp
from .launcher import start
from .pool import acquire, purge
from .shutdown import stop

__all__ = [
    "IDLE_MARKER",
    "PREFIX",
    "InvalidDataDirectoryError",
    "PgTmp",
    "PgTmpError",
    "PortAllocationError",
    "StartOptions",
    "StopOptions",
    "ToolInvocationError",
    "UnknownVersionError",
    "acquire",
    "initdb",
    "purge",
    "start",
    "stop",
]
