from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from retry import retry

from . import background, pool, tools, utils
from .db_config import StartOptions
from .env import get_pg_environ
from .errors import ToolInvocationError
from .instance import PgTmp

logger = logging.getLogger(__name__)

TEST_DATABASE = "test"
DEFAULT_HOST = "127.0.0.1"
CREATEDB_TRIES = 5
CREATEDB_DELAY = 0.1


@retry(ToolInvocationError, tries=CREATEDB_TRIES, delay=CREATEDB_DELAY, logger=logger)
def create_test_database(data_dir: Path, port: int | None = None) -> None:
    """
    Create the test database, unless it already exists.

    The server is started without waiting, so the first attempts may fail
    until it accepts connections.
    """
    try:
        tools.run_tool(
            "createdb",
            ["-E", "UNICODE", TEST_DATABASE],
            env=get_pg_environ(host=data_dir, port=port),
        )
    except ToolInvocationError as e:
        if "already exists" in e.stderr:
            logger.debug(f"Database {TEST_DATABASE} already exists")
            return
        raise


def _dsn(data_dir: Path, host: str | None, port: int | None) -> str:
    if port:
        return f"postgresql://{host}:{port}/{TEST_DATABASE}"
    return f"postgresql:///{TEST_DATABASE}?host={quote(str(data_dir), safe='')}"


def start(options: StartOptions | None = None, **kwargs) -> PgTmp:
    """
    Start a temporary postgres server.

    A data directory is taken from the pool (or initialized) unless one is
    given. Once the server accepts connections and the ``test`` database
    exists, a background process is spawned to stop it after
    ``options.timeout`` seconds without connections.

    :param options: The start options. Keyword arguments build one instead.
    :return: The running server.
    """
    if options is None:
        options = StartOptions(**kwargs)

    root_dir = pool.acquire(options.data_dir)
    data_dir = root_dir / tools.get_postgres_version()

    postgres_options = options.postgres_options
    host = None
    port = None
    if options.host:
        host = DEFAULT_HOST if options.host is True else options.host
        port = options.port or utils.get_unused_port()
        if postgres_options:
            postgres_options += " "
        postgres_options += f"-c listen_addresses='*' -c port={port}"

    logger.debug(f"Starting database at {data_dir}")
    start_flags = ["-W", "-s", "-D", str(data_dir), "-l", str(data_dir / "postgres.log")]
    if postgres_options:
        start_flags += ["-o", postgres_options]
    tools.run_tool("pg_ctl", [*start_flags, "start"])

    create_test_database(data_dir, port)

    if options.timeout > 0:
        background.spawn_auto_stop(
            root_dir,
            timeout=options.timeout,
            host=host,
            port=port,
            keep=options.keep,
        )

    return PgTmp(
        dsn=_dsn(data_dir, host, port),
        data_dir=data_dir,
        root_dir=root_dir,
        host=host,
        port=port,
    )
