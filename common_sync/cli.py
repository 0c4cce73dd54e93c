"""
cli.py

Responsibility: CLI entrypoint for the rabbit_common release sync.

High-level flow (single command `run`):
1) Load config (YAML, optional) and apply CLI overrides
2) Wire the production adapters (subprocess runner, make, read_common_deps, tty prompts)
3) Run the pipeline; any SyncError becomes exit code 1

The stages themselves live in `pipeline.py` and the modules it calls.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from common_sync.build import MakeBuilder
from common_sync.config import load_config
from common_sync.deps import CommandDependencyLister
from common_sync.errors import SyncError
from common_sync.log import configure_logging
from common_sync.pipeline import SyncPipeline
from common_sync.process import run_command
from common_sync.release import TerminalConfirmer

log = logging.getLogger("common_sync.cli")


def run_cmd(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    if args.cache_dir:
        config = config.with_cache_dir(args.cache_dir)

    dest_root = Path(args.dest).resolve()
    pipeline = SyncPipeline(
        config,
        dest_root,
        runner=run_command,
        builder=MakeBuilder(
            run_command,
            build_command=config.build_command,
            clean_command=config.clean_command,
            tail_lines=config.log_tail_lines,
        ),
        lister=CommandDependencyLister(run_command, config.deps_command, cwd=dest_root),
        confirmer=TerminalConfirmer(),
    )
    result = pipeline.run()
    log.info("done: %s (%s)", result.tag, result.strategy.value)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="common-sync",
        description="Vendor generated rabbit_common sources from upstream RabbitMQ and publish a release",
    )
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("run", help="Sync mirrors, build, copy files, then commit/tag/push after review")
    r.add_argument("--config", default=None, help="Path to a YAML config file (default: built-in settings)")
    r.add_argument("--dest", default=".", help="Root of the rabbit_common checkout (default: current directory)")
    r.add_argument("--cache-dir", default=None, help="Directory holding the upstream mirrors (overrides config)")
    r.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    r.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")

    r.set_defaults(func=run_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, json_output=bool(args.log_json))
    try:
        return int(args.func(args))
    except SyncError as e:
        log.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
