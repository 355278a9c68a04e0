import os
import shutil
import tempfile
from pathlib import Path

import pytest

import pg_tmp.tools
from pg_tmp import background
from pg_tmp.errors import ToolInvocationError

PG_VERSION = "17.0"


class FakeToolchain:
    """
    Stands in for the PostgreSQL binaries: records every invocation and
    lays out files the way initdb does.
    """

    def __init__(self):
        self.calls = []
        self.createdb_errors = []

    def __call__(self, name, args, *, env=None, forward_io=False):
        self.calls.append((name, list(args), dict(env or {})))
        if name == "pg_ctl" and args == ["-V"]:
            return f"pg_ctl (PostgreSQL) {PG_VERSION}\n"
        if name == "initdb":
            return self._initdb(Path(args[args.index("-D") + 1]))
        if name == "createdb" and self.createdb_errors:
            stderr = self.createdb_errors.pop(0)
            raise ToolInvocationError([name, *args], 1, "", stderr)
        return ""

    def _initdb(self, data_dir):
        if data_dir.exists() and any(data_dir.iterdir()):
            raise ToolInvocationError(
                ["initdb"],
                1,
                "",
                f'initdb: error: directory "{data_dir}" exists but is not empty\n',
            )
        data_dir.mkdir(parents=True, exist_ok=True)
        (data_dir / "postgresql.conf").write_text("# defaults\n")
        return "Success.\n"

    def invocations(self, name, action=None):
        return [
            args
            for tool, args, _ in self.calls
            if tool == name and (action is None or args[-1:] == [action])
        ]


@pytest.fixture
def pool_root(tmp_path, monkeypatch):
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def toolchain(monkeypatch, pool_root):
    fake = FakeToolchain()
    monkeypatch.setattr(pg_tmp.tools, "run_tool", fake)
    return fake


@pytest.fixture
def spawned(monkeypatch):
    """
    Replaces the detached helper processes with a record of their arguments.
    """
    calls = []
    monkeypatch.setattr(background, "background_spawn", calls.append)
    return calls


@pytest.fixture
def no_sleep(monkeypatch):
    slept = []
    monkeypatch.setattr("time.sleep", slept.append)
    return slept


def postgres_available():
    return shutil.which("pg_ctl") is not None and not (
        hasattr(os, "geteuid") and os.geteuid() == 0
    )


@pytest.fixture
def real_pool_root(monkeypatch):
    """
    A short pool root shared with the helper processes. Unix socket paths
    are limited to about 100 bytes, which pytest's tmp_path can exceed.
    """
    root = Path(tempfile.mkdtemp(prefix="pgt"))
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    monkeypatch.setenv("TMPDIR", str(root))
    yield root
    shutil.rmtree(root, ignore_errors=True)
