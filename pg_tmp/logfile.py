from __future__ import annotations

import contextlib
import logging
import os
from typing import Iterator

formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


@contextlib.contextmanager
def connect_log_file(filename: str | os.PathLike) -> Iterator[logging.Handler]:
    """
    Send the pg_tmp logs and this process's stdout/stderr to a file.

    Exceptions escaping the block are logged with their traceback and
    re-raised. Everything is restored on exit.
    """
    handler = logging.FileHandler(filename)
    handler.setFormatter(formatter)
    logger = logging.getLogger("pg_tmp")
    logger.addHandler(handler)
    try:
        with contextlib.redirect_stdout(handler.stream), contextlib.redirect_stderr(
            handler.stream
        ):
            try:
                yield handler
            except Exception:
                logger.exception("Unhandled error")
                raise
    finally:
        logger.removeHandler(handler)
        handler.close()
