"""
vendor.py

Responsibility: replace the vendored files in this checkout with fresh copies
from the server mirror.

Files are treated as opaque bytes. After `purge_and_copy`, `src/` holds only
the requested files of the vendored pattern, and `include/` mirrors the
server's generated include directory.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from common_sync.errors import SyncError

log = logging.getLogger(__name__)


def _purge(dest_src_dir: Path, dest_include_dir: Path, pattern: str) -> int:
    removed = 0
    if dest_src_dir.is_dir():
        for path in sorted(dest_src_dir.glob(pattern)):
            if path.is_file() or path.is_symlink():
                path.unlink()
                removed += 1
    if dest_include_dir.is_dir():
        shutil.rmtree(dest_include_dir)
    return removed


def purge_and_copy(
    dest_src_dir: str | Path,
    dest_include_dir: str | Path,
    server_dir: str | Path,
    files: Iterable[str],
    *,
    pattern: str = "*.erl",
    include_dir: str | Path = "include",
) -> list[Path]:
    """
    Purge previously vendored files, then copy `files` and the include tree.

    - `server_dir/src/<name>` is copied to `dest_src_dir/<name>` for each name.
    - A missing source file stops immediately; copies made so far stay.
    - `server_dir/<include_dir>` replaces `dest_include_dir` wholesale.

    Returns the destination paths of the copied source files.
    """
    dst_src = Path(dest_src_dir)
    dst_inc = Path(dest_include_dir)
    srv = Path(server_dir)

    removed = _purge(dst_src, dst_inc, pattern)
    log.info("removed %d vendored file(s) from %s", removed, dst_src)

    dst_src.mkdir(parents=True, exist_ok=True)
    copied: list[Path] = []
    for name in files:
        src_path = srv / "src" / name
        if not src_path.is_file():
            raise SyncError(f"Expected source file is missing: {src_path}")
        dst_path = dst_src / name
        shutil.copy2(src_path, dst_path)
        copied.append(dst_path)

    inc_src = srv / include_dir
    if not inc_src.is_dir():
        raise SyncError(f"Generated include directory is missing: {inc_src}")
    shutil.copytree(inc_src, dst_inc)

    log.info("copied %d file(s) and %s", len(copied), inc_src)
    return copied
