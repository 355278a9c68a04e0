import logging
from pathlib import Path
from typing import Optional

import typer

from pg_tmp import StartOptions, StopOptions, initdb, purge, start
from pg_tmp.cluster import make_data_dir
from pg_tmp.logfile import connect_log_file, formatter
from pg_tmp.shutdown import ShutdownWatcher

app = typer.Typer()

logger = logging.getLogger("pg_tmp")


def main():
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    app()


@app.command("initdb")
def initdb_command(
    data_dir: Optional[Path] = typer.Argument(None),
    forward_io: bool = False,
):
    """
    Initialize a data directory. Without DATA_DIR, a spare one is added to
    the pool and the output goes to its initdb.log.
    """
    if data_dir is None:
        data_dir = make_data_dir()
        with connect_log_file(data_dir / "initdb.log"):
            initdb(data_dir)
    else:
        initdb(data_dir, forward_io=forward_io)
    typer.echo(data_dir)


@app.command("start")
def start_command(
    data_dir: Optional[Path] = None,
    host: Optional[str] = None,
    tcp: bool = typer.Option(False, help="Listen on 127.0.0.1."),
    port: Optional[int] = None,
    timeout: float = 60,
    keep: bool = False,
    postgres_options: str = "",
):
    pg = start(
        StartOptions(
            data_dir=data_dir,
            host=host or tcp,
            port=port,
            timeout=timeout,
            keep=keep,
            postgres_options=postgres_options,
        )
    )
    typer.echo(pg.dsn)


@app.command("stop")
def stop_command(
    data_dir: Path,
    host: Optional[str] = None,
    port: Optional[int] = None,
    timeout: float = 5,
    initial_timeout: float = 0,
    keep: bool = False,
    force: bool = False,
    log: bool = typer.Option(True, help="Write the output to DATA_DIR/stop.log."),
):
    options = StopOptions(
        keep=keep,
        timeout=timeout,
        initial_timeout=initial_timeout,
        force=force,
        host=host,
        port=port,
        forward_io=not log,
        verbose=True,
    )
    watcher = ShutdownWatcher(data_dir, options)
    if log:
        with connect_log_file(data_dir / "stop.log"):
            logger.info(f"options => {options}")
            watcher.run()
    else:
        watcher.run()


@app.command("purge")
def purge_command():
    """
    Remove the idle data directories of the current user.
    """
    for data_dir in purge():
        typer.echo(data_dir)


if __name__ == "__main__":
    main()
