from __future__ import annotations


class PgTmpError(Exception):
    """
    Base class for all pg_tmp errors.
    """

    pass


class ToolInvocationError(PgTmpError):
    """
    A PostgreSQL tool exited with a non-zero code.
    """

    def __init__(
        self,
        command: list[str],
        returncode: int,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        super().__init__(
            f"{command[0]} failed with code {returncode}: {self.stderr.strip()}"
        )


class UnknownVersionError(ToolInvocationError):
    """
    The version reported by pg_ctl could not be parsed.
    """

    def __init__(self, output: str):
        self.command = ["pg_ctl", "-V"]
        self.returncode = 0
        self.stdout = output
        self.stderr = ""
        PgTmpError.__init__(
            self, f"Could not parse the PostgreSQL version from {output.strip()!r}"
        )


class InvalidDataDirectoryError(PgTmpError, ValueError):
    """
    The given path is not a data directory initialized for the installed
    PostgreSQL version.
    """

    def __init__(self, path):
        self.path = path
        super().__init__(f"Please specify a valid PostgreSQL data directory: {path}")


class PortAllocationError(PgTmpError, OSError):
    """
    No unused TCP port could be obtained from the OS.
    """

    pass
