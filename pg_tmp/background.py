from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)


def _helper_command(*args: str) -> list[str]:
    return [sys.executable, "-m", "pg_tmp", *args]


def background_spawn(args: list[str]) -> None:
    """
    Start a detached, low priority process and forget about it.

    The child gets its own session so it outlives this process, and
    all of its standard streams are discarded. Failing to spawn is
    logged, never raised.
    """
    kwargs = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if os.name == "nt":
        kwargs["creationflags"] = (
            subprocess.DETACHED_PROCESS
            | subprocess.CREATE_NEW_PROCESS_GROUP
            | subprocess.IDLE_PRIORITY_CLASS
        )
    else:
        kwargs["start_new_session"] = True
        nice = shutil.which("nice")
        if nice:
            args = [nice, "-n", "19", *args]

    logger.debug(f"Spawning background process: {' '.join(args)}")
    try:
        subprocess.Popen(args, **kwargs)
    except OSError:
        logger.warning("Failed to spawn background process", exc_info=True)


def spawn_prewarm() -> None:
    """
    Initialize a spare data directory in the background.
    """
    background_spawn(_helper_command("initdb"))


def spawn_auto_stop(
    data_dir: str | os.PathLike,
    *,
    timeout: float,
    host: str | None = None,
    port: int | None = None,
    keep: bool = False,
) -> None:
    """
    Stop the server in ``data_dir`` in the background, once ``timeout``
    seconds passed and no client is connected.
    """
    args = _helper_command(
        "stop",
        str(data_dir),
        f"--timeout={timeout}",
        f"--initial-timeout={timeout}",
    )
    if host:
        args.append(f"--host={host}")
    if port:
        args.append(f"--port={port}")
    if keep:
        args.append("--keep")
    background_spawn(args)
