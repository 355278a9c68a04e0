from __future__ import annotations

import logging
import re
import shutil
import subprocess
from typing import Mapping

from .env import get_pg_environ
from .errors import ToolInvocationError, UnknownVersionError

logger = logging.getLogger(__name__)

TOOL_TIMEOUT = 120

_VERSION_PATTERN = re.compile(r"\(PostgreSQL\)\s+(?P<version>\d[^\s]*)")


def run_tool(
    name: str,
    args: list[str],
    *,
    env: Mapping[str, str] | None = None,
    forward_io: bool = False,
) -> str:
    """
    Run a PostgreSQL command line tool.
    :param name: The tool to run, e.g. ``pg_ctl`` or ``initdb``.
    :param args: The arguments to pass to the tool.
    :param env: The environment, defaults to :func:`get_pg_environ`.
    :param forward_io: Forward the tool's output to this process instead of
        capturing it.
    :return: The captured standard output.
    """
    if env is None:
        env = get_pg_environ()
    executable = shutil.which(name, path=env.get("PATH")) or name
    command = [executable, *args]
    logger.debug(f"Running {' '.join(command)}")
    result = subprocess.run(
        command,
        env=env,
        universal_newlines=True,
        capture_output=not forward_io,
        timeout=TOOL_TIMEOUT,
    )
    return _handle_result(command, result)


def _handle_result(command: list[str], result: subprocess.CompletedProcess) -> str:
    """
    Handle the result of a tool invocation.
    :param command: The command that was run.
    :param result: The completed process.
    :return: The standard output of the tool.
    """
    if result.returncode != 0:
        if result.stderr:
            logger.error(result.stderr)
        raise ToolInvocationError(
            command, result.returncode, result.stdout, result.stderr
        )
    if result.stdout:
        logger.debug(result.stdout)
    return result.stdout or ""


def get_postgres_version() -> str:
    """
    Get the version of the installed PostgreSQL toolchain, as reported by
    ``pg_ctl -V`` (e.g. ``17.0``).
    """
    out = run_tool("pg_ctl", ["-V"])
    match = _VERSION_PATTERN.search(out)
    if match is None:
        raise UnknownVersionError(out)
    return match.group("version")
