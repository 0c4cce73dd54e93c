"""
mirrors.py

Responsibility: keep the three upstream mirrors (client, server, codegen)
present and synchronized, and resolve the release tag from the client mirror.

The same tag name is assumed to exist in every mirror; that is upstream
tagging discipline and is not verified here. A missing tag simply makes the
checkout fail.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from common_sync.config import MirrorConfig
from common_sync.errors import SyncError
from common_sync.process import Runner

log = logging.getLogger(__name__)


def ensure_present(runner: Runner, mirror: MirrorConfig) -> bool:
    """
    Clone `mirror.url` into `mirror.path` unless the path already exists.

    Returns True when a clone was performed.
    """
    if mirror.path.exists():
        log.debug("mirror %s already present at %s", mirror.name, mirror.path)
        return False
    mirror.path.parent.mkdir(parents=True, exist_ok=True)
    log.info("cloning %s into %s", mirror.url, mirror.path)
    runner(["git", "clone", mirror.url, str(mirror.path)], cwd=mirror.path.parent)
    return True


def sync_to_latest(runner: Runner, path: Path, *, branch: str = "master", remote: str = "origin") -> None:
    # Order matters: a failing step must stop the ones after it.
    runner(["git", "checkout", branch], cwd=path)
    runner(["git", "fetch", remote], cwd=path)
    runner(["git", "pull", remote, branch], cwd=path)


def checkout_tag(runner: Runner, path: Path, tag: str) -> None:
    runner(["git", "checkout", tag], cwd=path)


def resolve_latest_tag(runner: Runner, client_path: Path) -> str:
    """
    Return the nearest tag reachable from HEAD of the client mirror.

    This is the version used for the whole run. There is no fallback: a
    repository without tags is an error.
    """
    tag = runner(["git", "describe", "--abbrev=0", "--tags"], cwd=client_path).strip()
    if not tag:
        raise SyncError(f"No tag found in {client_path}")
    return tag


def align_tag(runner: Runner, mirrors: Iterable[MirrorConfig], tag: str) -> None:
    for mirror in mirrors:
        log.info("checking out %s in %s", tag, mirror.name)
        checkout_tag(runner, mirror.path, tag)
