"""
build.py

Responsibility: produce the generated server sources (and clean them up again).

The build is never retried: a failure means the upstream source needs a
human, so the tail of the build log is reported and the run stops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from common_sync.errors import BuildError, CommandError
from common_sync.process import Runner

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    success: bool
    log_tail: list[str] = field(default_factory=list)


class Builder(Protocol):
    def build(self, server_path: Path) -> BuildResult: ...

    def clean(self, server_path: Path) -> None: ...


def _tail(output: str, lines: int) -> list[str]:
    return output.splitlines()[-lines:] if lines > 0 else []


class MakeBuilder:
    """Runs the server's own build and clean targets (`make` / `make clean`)."""

    def __init__(
        self,
        runner: Runner,
        *,
        build_command: list[str] | None = None,
        clean_command: list[str] | None = None,
        tail_lines: int = 10,
    ) -> None:
        self._runner = runner
        self._build_command = list(build_command or ["make"])
        self._clean_command = list(clean_command or ["make", "clean"])
        self._tail_lines = tail_lines

    def build(self, server_path: Path) -> BuildResult:
        try:
            output = self._runner(self._build_command, cwd=server_path)
        except CommandError as e:
            return BuildResult(success=False, log_tail=_tail(e.output, self._tail_lines))
        return BuildResult(success=True, log_tail=_tail(output, self._tail_lines))

    def clean(self, server_path: Path) -> None:
        self._runner(self._clean_command, cwd=server_path, quiet=True)


def build_server(builder: Builder, server_path: Path) -> BuildResult:
    log.info("building %s", server_path)
    result = builder.build(server_path)
    if not result.success:
        for line in result.log_tail:
            log.error("build: %s", line)
        raise BuildError(f"Build failed in {server_path}", log_tail=result.log_tail)
    return result


def clean_build_artifacts(builder: Builder, server_path: Path) -> None:
    """Best-effort `make clean`; only reclaims disk space, so failures are ignored."""
    try:
        builder.clean(server_path)
    except CommandError as e:
        log.debug("ignoring clean failure: %s", e)
