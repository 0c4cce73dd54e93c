"""
deps.py

Responsibility: find out which generated server sources rabbit_common needs.

The answer comes from an external tool; an empty answer is an error, not
"nothing to copy".
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from common_sync.errors import DependencyError
from common_sync.process import Runner


class DependencyLister(Protocol):
    def list_required_files(self, descriptor: Path) -> list[str]: ...


class CommandDependencyLister:
    """
    Adapter for the `read_common_deps` escript.

    The tool takes the app descriptor path and prints a whitespace-separated
    list of source file names.
    """

    def __init__(self, runner: Runner, command: list[str], *, cwd: Path) -> None:
        self._runner = runner
        self._command = list(command)
        self._cwd = cwd

    def list_required_files(self, descriptor: Path) -> list[str]:
        output = self._runner([*self._command, str(descriptor)], cwd=self._cwd)
        return output.split()


def list_required_files(lister: DependencyLister, descriptor: Path) -> list[str]:
    files = lister.list_required_files(descriptor)
    if not files:
        raise DependencyError(f"No dependencies found in {descriptor}")
    return files
