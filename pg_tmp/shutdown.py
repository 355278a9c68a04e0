"""
Stopping a temporary server once its clients are gone.

The watcher goes WAITING -> DRAINING -> STOPPING -> DONE, skipping
DRAINING when forced, and ends in FAILED if any step raises.

While draining, active connections are counted over a fresh connection
on every poll. That connection counts itself, so the server is idle once
fewer than two connections are reported.
"""
from __future__ import annotations

import enum
import logging
import os
import shutil
import time
from pathlib import Path

import pg8000
from retry import retry

from . import tools, utils
from .db_config import StopOptions
from .env import get_pg_environ
from .errors import InvalidDataDirectoryError

logger = logging.getLogger(__name__)

ACTIVE_CONNECTIONS_QUERY = """
    SELECT count(*) FROM pg_stat_activity
    WHERE datname IS NOT NULL
    AND state IS NOT NULL
"""

# The polling connection is always one of the active connections.
IDLE_THRESHOLD = 2


class WatcherState(enum.Enum):
    WAITING = "waiting"
    DRAINING = "draining"
    STOPPING = "stopping"
    DONE = "done"
    FAILED = "failed"


@retry(OSError, tries=3, delay=0.1, logger=logger)
def remove_data_dir(data_dir: Path) -> None:
    """
    Remove a root data directory, retrying while the stopped server
    releases its files.
    """
    if data_dir.exists():
        shutil.rmtree(data_dir)


class ShutdownWatcher:
    def __init__(self, data_dir: str | os.PathLike, options: StopOptions):
        self.root_dir = Path(data_dir)
        self.options = options
        self.state = WatcherState.WAITING
        self.attempts = 0
        self.active_connections: int | None = None
        self.data_dir = self.root_dir / tools.get_postgres_version()
        if not self.data_dir.is_dir():
            raise InvalidDataDirectoryError(self.root_dir)

    def _log(self, msg: str) -> None:
        logger.log(logging.INFO if self.options.verbose else logging.DEBUG, msg)

    def _transition(self, state: WatcherState) -> None:
        logger.debug(f"{self.root_dir}: {self.state.value} -> {state.value}")
        self.state = state

    def count_active_connections(self) -> int:
        """
        Count the connections to the server, including the one used to
        count them.
        """
        try:
            connection = utils.connect(
                self.data_dir, host=self.options.host, port=self.options.port
            )
        except pg8000.Error as e:
            logger.exception("Failed to connect to postgres server", exc_info=e)
            raise
        try:
            cursor = connection.cursor()
            cursor.execute(ACTIVE_CONNECTIONS_QUERY)
            (count,) = cursor.fetchone()
        finally:
            connection.close()
        return int(count or 0)

    def wait(self) -> None:
        if self.options.initial_timeout > 0:
            self._log(f"waiting {self.options.initial_timeout} seconds")
            time.sleep(self.options.initial_timeout)
        if not self.options.force and self.options.timeout > 0:
            self._transition(WatcherState.DRAINING)
        else:
            self._transition(WatcherState.STOPPING)

    def drain(self) -> None:
        self._log("waiting for active connections to finish")
        self.active_connections = IDLE_THRESHOLD
        while self.active_connections >= IDLE_THRESHOLD:
            if self.attempts:
                time.sleep(self.options.timeout)
            self.attempts += 1
            self.active_connections = self.count_active_connections()
            self._log(f"number of active connections: {self.active_connections}")
        self._transition(WatcherState.STOPPING)

    def stop_server(self) -> None:
        self._log("stopping postgres...")
        tools.run_tool(
            "pg_ctl",
            ["-w", "-D", str(self.data_dir), "stop"],
            env=get_pg_environ(host=self.options.host, port=self.options.port),
            forward_io=self.options.forward_io,
        )
        if not self.options.keep:
            self._log("removing data directory...")
            remove_data_dir(self.root_dir)
        self._transition(WatcherState.DONE)

    def run(self) -> None:
        steps = {
            WatcherState.WAITING: self.wait,
            WatcherState.DRAINING: self.drain,
            WatcherState.STOPPING: self.stop_server,
        }
        try:
            while self.state in steps:
                steps[self.state]()
        except Exception:
            self._transition(WatcherState.FAILED)
            raise


def stop(data_dir: str | os.PathLike, options: StopOptions | None = None, **kwargs) -> None:
    """
    Stop the server running on a data directory and remove the directory.

    :param data_dir: The root data directory, as returned by ``initdb``
        (not the versioned sub-directory).
    :param options: The stop options. Keyword arguments build one instead.
    :raises InvalidDataDirectoryError: If ``data_dir`` holds no cluster for
        the installed PostgreSQL version. Nothing is stopped or removed.
    """
    if options is None:
        options = StopOptions(**kwargs)
    ShutdownWatcher(data_dir, options).run()
