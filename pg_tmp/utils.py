from __future__ import annotations

import getpass
import os
import socket
from pathlib import Path

import pg8000.dbapi

from .errors import PortAllocationError

DEFAULT_PORT = 5432


def get_unused_port() -> int:
    """
    Ask the OS for a TCP port nobody is listening on.

    The port is released before returning, so another process may grab it
    before the server binds it.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("0.0.0.0", 0))
            sock.listen(1)
            port = sock.getsockname()[1]
    except OSError as e:
        raise PortAllocationError(f"Failed to get unused port: {e}") from e
    if not port:
        raise PortAllocationError("Failed to get unused port")
    return port


def is_owned_by_current_user(path: str | os.PathLike) -> bool:
    """
    Check whether ``path`` exists and belongs to the user running this process.
    """
    try:
        st = os.stat(path)
    except OSError:
        return False
    if hasattr(os, "getuid"):
        return st.st_uid == os.getuid()
    # No POSIX owner to compare against.
    return False


def connect(
    data_dir: str | os.PathLike,
    *,
    host: str | None = None,
    port: int | None = None,
    database: str = "test",
) -> pg8000.dbapi.Connection:
    """
    Open a connection to the server running on ``data_dir``.

    Without a host, the Unix socket in the versioned data directory is used.
    """
    kwargs = {"user": getpass.getuser(), "database": database}
    if host:
        kwargs.update(host=host, port=port or DEFAULT_PORT)
    else:
        kwargs["unix_sock"] = str(
            Path(data_dir) / f".s.PGSQL.{port or DEFAULT_PORT}"
        )
    return pg8000.dbapi.connect(**kwargs)
