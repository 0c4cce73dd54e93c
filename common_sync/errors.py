"""
errors.py

Responsibility: the exception hierarchy.

Everything the run can fail with derives from `SyncError`; the CLI maps it
to exit code 1.
"""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base exception for this project; the CLI turns it into exit code 1."""


class ConfigError(SyncError):
    """Raised when the sync configuration is invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class CommandError(SyncError):
    """An external command exited non-zero (or could not be started)."""

    def __init__(self, cmd: list[str], returncode: int | None, output: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        status = "not found" if returncode is None else f"exit {returncode}"
        msg = f"Command failed ({status}): {' '.join(self.cmd)}"
        if output.strip():
            msg = f"{msg}\n\n{output.rstrip()}"
        super().__init__(msg)


class BuildError(SyncError):
    def __init__(self, message: str, *, log_tail: list[str]):
        super().__init__(message)
        self.log_tail = list(log_tail)


class DependencyError(SyncError):
    pass


class AbortedError(SyncError):
    """The operator declined a confirmation prompt."""
