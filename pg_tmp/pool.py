"""
Reuse of initialized data directories across processes.

A directory in the temp root whose name starts with :data:`PREFIX` is an
idle candidate when it holds a cluster for the installed PostgreSQL
version and its idle marker is owned by the current user. Deleting the
marker is what claims it: when two processes race for the same
directory, only one ``unlink`` succeeds and the loser moves on.
"""
from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

from . import background, tools, utils
from .cluster import IDLE_MARKER, PREFIX, initdb

logger = logging.getLogger(__name__)


def _is_dir(path: Path) -> bool:
    # Other users' directories are not readable by us.
    try:
        return path.is_dir()
    except OSError:
        return False


def _claim(data_dir: Path) -> bool:
    try:
        (data_dir / IDLE_MARKER).unlink()
    except OSError:
        logger.debug(f"Lost the claim on {data_dir}")
        return False
    return True


def claim_idle_data_dir(pg_version: str) -> Path | None:
    """
    Claim the first idle data directory initialized for ``pg_version``.

    The scan order is whatever the filesystem returns.

    :return: The claimed root directory, or None if none could be claimed.
    """
    for candidate in Path(tempfile.gettempdir()).glob(PREFIX + "*"):
        if not _is_dir(candidate / pg_version):
            continue
        if not utils.is_owned_by_current_user(candidate / IDLE_MARKER):
            continue
        if _claim(candidate):
            logger.debug(f"Claimed idle data directory {candidate}")
            return candidate
    return None


def create_data_dir() -> Path:
    """
    Initialize a new data directory and claim it for this process.
    """
    while True:
        data_dir = initdb()
        if _claim(data_dir):
            return data_dir
        # Someone adopted it between initdb and our claim; it is theirs now.


def acquire(data_dir: str | os.PathLike | None = None) -> Path:
    """
    Get a data directory ready for starting a server.

    An explicit ``data_dir`` is initialized in place unless it already
    holds a cluster owned by the current user, in which case it is used
    as is. Otherwise an idle directory is claimed from the pool, or a new
    one is created, and a spare directory is initialized in the
    background for the next caller.

    :return: The root data directory.
    """
    pg_version = tools.get_postgres_version()

    if data_dir:
        data_dir = Path(data_dir)
        if not utils.is_owned_by_current_user(data_dir / pg_version):
            initdb(data_dir)
            with contextlib.suppress(OSError):
                (data_dir / IDLE_MARKER).unlink()
        return data_dir

    data_dir = claim_idle_data_dir(pg_version)
    if data_dir is None:
        data_dir = create_data_dir()

    background.spawn_prewarm()
    return data_dir


def purge(pg_version: str | None = None) -> list[Path]:
    """
    Remove the idle data directories of the current user.

    Each directory is claimed before removal, so a directory being
    adopted concurrently is left alone.

    :param pg_version: Only purge directories initialized for this version.
    :return: The removed directories.
    """
    removed = []
    for candidate in Path(tempfile.gettempdir()).glob(PREFIX + "*"):
        if pg_version and not _is_dir(candidate / pg_version):
            continue
        if not utils.is_owned_by_current_user(candidate / IDLE_MARKER):
            continue
        if _claim(candidate):
            logger.debug(f"Removing idle data directory {candidate}")
            shutil.rmtree(candidate, ignore_errors=True)
            removed.append(candidate)
    return removed
