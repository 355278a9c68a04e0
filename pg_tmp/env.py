from __future__ import annotations

import os
from pathlib import Path


def get_postgres_bin_dir() -> Path | None:
    """
    Get the directory holding the postgres binaries, if one is configured.

    :return: The value of ``PGTMP_BIN_DIR``, or None to rely on ``PATH``.
    """
    bin_dir = os.environ.get("PGTMP_BIN_DIR")
    return Path(bin_dir) if bin_dir else None


def get_pg_environ(host: str | os.PathLike | None = None, port: int | None = None):
    """
    Build the environment passed to every PostgreSQL tool.

    :param host: Value for ``PGHOST`` (a hostname or a socket directory).
    :param port: Value for ``PGPORT``. When None, PostgreSQL's default
        port is used even if ``PGPORT`` is set in this process.
    :return: A copy of ``os.environ`` with the overrides applied.
    """
    environ = dict(os.environ)
    bin_dir = get_postgres_bin_dir()
    if bin_dir is not None:
        environ["PATH"] = str(bin_dir) + os.pathsep + environ.get("PATH", "")
    if host is not None:
        environ["PGHOST"] = str(host)
    # The server, its clients and the pg8000 probes must agree on the
    # socket name, so an inherited PGPORT is never used.
    environ.pop("PGPORT", None)
    if port is not None:
        environ["PGPORT"] = str(port)
    return environ
