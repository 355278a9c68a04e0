from __future__ import annotations

import dataclasses
from pathlib import Path
from types import TracebackType
from typing import Type

import pg8000.dbapi

from . import utils
from .db_config import StopOptions
from .shutdown import stop


@dataclasses.dataclass(frozen=True)
class PgTmp:
    """
    A running temporary postgres server.
    """

    dsn: str
    # The versioned data directory the server runs on.
    data_dir: Path
    # The directory returned by initdb, removed when the server stops.
    root_dir: Path
    host: str | None = None
    port: int | None = None

    def stop(self, **options) -> None:
        """
        Stop the server. Keyword arguments are :class:`StopOptions` fields.
        """
        options.setdefault("host", self.host)
        options.setdefault("port", self.port)
        stop(self.root_dir, StopOptions(**options))

    def connect(self, database: str = "test") -> pg8000.dbapi.Connection:
        """
        Open a pg8000 connection to the server.
        """
        return utils.connect(
            self.data_dir, host=self.host, port=self.port, database=database
        )

    def __enter__(self) -> PgTmp:
        return self

    def __exit__(
        self,
        exc_type: Type[Exception] | None,
        exc_val: Exception | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """
        Stop the server without waiting for clients, and clean up.
        """
        self.stop(force=True)
