import logging

from typer.testing import CliRunner

from pg_tmp.__main__ import app
from pg_tmp.cluster import IDLE_MARKER, PREFIX

from .conftest import PG_VERSION

runner = CliRunner()


def test_initdb_adds_spare_data_dir_to_pool(toolchain, pool_root, caplog):
    caplog.set_level(logging.DEBUG, logger="pg_tmp")
    result = runner.invoke(app, ["initdb"])

    assert result.exit_code == 0, result.output
    [data_dir] = pool_root.glob(PREFIX + "*")
    assert result.output.strip() == str(data_dir)
    assert (data_dir / IDLE_MARKER).exists()
    assert (data_dir / PG_VERSION).is_dir()
    assert "Initializing database" in (data_dir / "initdb.log").read_text()


def test_initdb_into_given_directory(toolchain, tmp_path):
    data_dir = tmp_path / "given"
    result = runner.invoke(app, ["initdb", str(data_dir)])

    assert result.exit_code == 0, result.output
    assert (data_dir / PG_VERSION).is_dir()
    assert not (data_dir / "initdb.log").exists()


def test_stop_invalid_data_dir_fails(toolchain, tmp_path):
    result = runner.invoke(app, ["stop", str(tmp_path / "missing")])

    assert result.exit_code != 0
    assert toolchain.invocations("pg_ctl", "stop") == []


def test_stop_forced_logs_to_data_dir(toolchain, tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="pg_tmp")
    data_dir = tmp_path / "pg_tmp.cli"
    (data_dir / PG_VERSION).mkdir(parents=True)

    result = runner.invoke(app, ["stop", str(data_dir), "--force", "--keep"])

    assert result.exit_code == 0, result.output
    assert len(toolchain.invocations("pg_ctl", "stop")) == 1
    assert "stopping postgres..." in (data_dir / "stop.log").read_text()


def test_purge(toolchain, pool_root):
    runner.invoke(app, ["initdb"])
    [data_dir] = pool_root.glob(PREFIX + "*")

    result = runner.invoke(app, ["purge"])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(data_dir)
    assert not data_dir.exists()


def test_stop_non_data_dir_leaves_no_log(toolchain, tmp_path):
    data_dir = tmp_path / "pg_tmp.other"
    (data_dir / "9.6").mkdir(parents=True)

    result = runner.invoke(app, ["stop", str(data_dir)])

    assert result.exit_code != 0
    assert sorted(p.name for p in data_dir.iterdir()) == ["9.6"]
    assert toolchain.invocations("pg_ctl", "stop") == []
