from __future__ import annotations

import logging
import os
import tempfile
import textwrap
from pathlib import Path

from . import tools

logger = logging.getLogger(__name__)

# Data directories created by this package are named with this prefix.
PREFIX = "pg_tmp."

# Present only while a data directory has never been used by a server.
IDLE_MARKER = "NEW"

POSTGRESQL_CONF = "postgresql.conf"


def make_data_dir() -> Path:
    """
    Create an empty, uniquely named data directory in the temp root.
    """
    return Path(tempfile.mkdtemp(prefix=PREFIX))


def initdb(
    data_dir: str | os.PathLike | None = None, *, forward_io: bool = False
) -> Path:
    """
    Initialize a PostgreSQL cluster tuned for disposable test databases.

    The cluster lives in a sub-directory named after the installed
    PostgreSQL version. The idle marker is written last, so its presence
    means the directory is fully initialized and was never used.

    :param data_dir: Where to initialize the cluster. A new temporary
        directory is created when omitted.
    :param forward_io: Forward the output of ``initdb`` to this process.
    :return: The root data directory.
    """
    data_dir = Path(data_dir) if data_dir else make_data_dir()
    pg_version = tools.get_postgres_version()
    versioned_dir = data_dir / pg_version

    logger.debug(f"Initializing database at {versioned_dir}")
    versioned_dir.mkdir(parents=True, exist_ok=True)
    tools.run_tool(
        "initdb",
        ["--nosync", "-D", str(versioned_dir), "-E", "UNICODE", "-A", "trust"],
        forward_io=forward_io,
    )

    settings = textwrap.dedent(
        f"""
        unix_socket_directories = '{versioned_dir}'
        listen_addresses = ''
        shared_buffers = 12MB
        fsync = off
        synchronous_commit = off
        full_page_writes = off
        log_min_duration_statement = 0
        log_connections = on
        log_disconnections = on
        """
    )
    with open(versioned_dir / POSTGRESQL_CONF, "a", encoding="utf-8") as conf:
        conf.write(settings)

    (data_dir / IDLE_MARKER).touch()
    return data_dir
