"""
release.py

Responsibility: the interactive publish step.

1) Stage everything and show `git status` for review
2) Ask the operator to confirm
3) Commit, tag and push; when the tag already exists, ask whether to move it

Prompts go through a `Confirmer` so the decision logic runs without a terminal.
"""

from __future__ import annotations

import enum
import logging
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, TextIO

from common_sync.errors import AbortedError, CommandError
from common_sync.process import Runner

log = logging.getLogger(__name__)


class Confirmer(Protocol):
    def confirm(self, prompt: str) -> bool: ...


class TerminalConfirmer:
    """
    Reads a single keystroke from the terminal; only `y`/`Y` means yes.

    When stdin is not a tty (piped input) a whole line is read instead.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def _read_key(self) -> str:
        if not self._stdin.isatty():
            return self._stdin.readline()[:1]

        import termios
        import tty

        fd = self._stdin.fileno()
        saved = termios.tcgetattr(fd)
        try:
            tty.setraw(fd)
            return self._stdin.read(1)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)

    def confirm(self, prompt: str) -> bool:
        self._stdout.write(f"{prompt} [y/N] ")
        self._stdout.flush()
        key = self._read_key()
        self._stdout.write("\n")
        return key in ("y", "Y")


class TagStrategy(enum.Enum):
    NEW_TAG = "new_tag"
    EXISTING_TAG = "existing_tag"


@dataclass(frozen=True)
class PublishResult:
    tag: str
    strategy: TagStrategy
    committed: bool
    tagged: bool
    forced: bool


def present_for_review(
    runner: Runner,
    repo: Path,
    confirmer: Confirmer,
    *,
    exclude: Iterable[Path] = (),
    echo: Callable[[str], None] = print,
) -> None:
    """
    Stage all changes and block on the operator's approval.

    Paths in `exclude` (relative to `repo`, e.g. mirrors cloned inside the
    checkout) are left out of the index. Declining raises AbortedError; the
    staged changes are left on disk.
    """
    pathspec = [f":(exclude){p.as_posix()}" for p in exclude]
    add = ["git", "add", "-A"] + (["--", ".", *pathspec] if pathspec else [])
    runner(add, cwd=repo)
    echo(runner(["git", "status"], cwd=repo).rstrip())
    if not confirmer.confirm("Commit and push?"):
        raise AbortedError("Aborted: changes left uncommitted for inspection")


def current_tag(runner: Runner, repo: Path) -> str | None:
    """Most recent tag of this checkout, or None when it has no tags yet."""
    try:
        out = runner(["git", "describe", "--abbrev=0", "--tags"], cwd=repo, quiet=True)
    except CommandError:
        return None
    return out.strip() or None


def decide_tag_strategy(current: str | None, latest: str) -> TagStrategy:
    if current is not None and current == latest:
        return TagStrategy.EXISTING_TAG
    return TagStrategy.NEW_TAG


def _push(runner: Runner, repo: Path, remote: str, *, force: bool) -> None:
    flags = ["-f"] if force else []
    runner(["git", "push", *flags, remote], cwd=repo)
    runner(["git", "push", *flags, remote, "--tags"], cwd=repo)


def publish(
    runner: Runner,
    repo: Path,
    confirmer: Confirmer,
    latest_tag: str,
    message: str,
    *,
    remote: str = "origin",
) -> PublishResult:
    strategy = decide_tag_strategy(current_tag(runner, repo), latest_tag)

    if strategy is TagStrategy.NEW_TAG:
        runner(["git", "commit", "-m", message], cwd=repo)
        runner(["git", "tag", latest_tag], cwd=repo)
        _push(runner, repo, remote, force=False)
        log.info("published %s", latest_tag)
        return PublishResult(tag=latest_tag, strategy=strategy, committed=True, tagged=True, forced=False)

    if not confirmer.confirm(f"Tag {latest_tag} already exists. Move it to a new commit?"):
        _push(runner, repo, remote, force=False)
        log.info("pushed existing history for %s", latest_tag)
        return PublishResult(tag=latest_tag, strategy=strategy, committed=False, tagged=False, forced=False)

    runner(["git", "commit", "--allow-empty", "-m", message], cwd=repo)
    runner(["git", "tag", "-f", latest_tag], cwd=repo)
    _push(runner, repo, remote, force=True)
    log.warning("moved tag %s and force-pushed", latest_tag)
    return PublishResult(tag=latest_tag, strategy=strategy, committed=True, tagged=True, forced=True)
