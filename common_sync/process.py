"""
process.py

Responsibility: the single place that starts external processes (git, make,
read_common_deps).

Everything else receives a `Runner` so tests can record commands instead of
executing them.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from common_sync.errors import CommandError

log = logging.getLogger(__name__)


class Runner(Protocol):
    def __call__(self, cmd: list[str], *, cwd: Path, quiet: bool = False) -> str: ...


def run_command(cmd: list[str], *, cwd: Path, quiet: bool = False) -> str:
    """
    Run a subprocess command and return its combined stdout/stderr.

    Raises CommandError on a non-zero exit. With `quiet`, the captured output
    is dropped from the error; the caller decides whether to swallow it.
    """
    log.debug("run: %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise CommandError(cmd, None, str(e)) from e
    except subprocess.CalledProcessError as e:
        output = "" if quiet else (e.stdout or "")
        raise CommandError(cmd, e.returncode, output) from e
    return proc.stdout or ""
