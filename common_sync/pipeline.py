"""
pipeline.py

Responsibility: run the six release stages in order.

1) Source acquisition: clone-if-absent, then fast-forward every mirror
2) Tag resolution: latest tag of the client mirror
3) Tag alignment: check that tag out in every mirror
4) Artifact generation: server build
5) File sync: purge, copy the dependency subset and includes, clean the build
6) Publish: stamp the version, review, commit/tag/push

The resolved tag is passed explicitly from stage to stage. Nothing is rolled
back on failure; re-running the whole pipeline is the recovery path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from common_sync.build import Builder, build_server, clean_build_artifacts
from common_sync.config import MirrorConfig, SyncConfig
from common_sync.deps import DependencyLister, list_required_files
from common_sync.mirrors import align_tag, ensure_present, resolve_latest_tag, sync_to_latest
from common_sync.process import Runner
from common_sync.release import Confirmer, PublishResult, present_for_review, publish
from common_sync.stamp import render_commit_message, stamp_version
from common_sync.vendor import purge_and_copy

log = logging.getLogger(__name__)


class SyncPipeline:
    def __init__(
        self,
        config: SyncConfig,
        dest_root: Path,
        *,
        runner: Runner,
        builder: Builder,
        lister: DependencyLister,
        confirmer: Confirmer,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.config = config
        self.dest_root = dest_root.resolve()
        self._runner = runner
        self._builder = builder
        self._lister = lister
        self._confirmer = confirmer
        self._echo = echo

    def _dest(self, path: Path) -> Path:
        return path if path.is_absolute() else self.dest_root / path

    def _mirror(self, mirror: MirrorConfig) -> MirrorConfig:
        return replace(mirror, path=self._dest(mirror.path))

    @property
    def mirrors(self) -> list[MirrorConfig]:
        return [self._mirror(m) for m in self.config.mirrors]

    def mirrors_in_checkout(self) -> list[Path]:
        """Mirror paths inside `dest_root`, relative to it; they must never be staged."""
        inside: list[Path] = []
        for mirror in self.mirrors:
            try:
                inside.append(mirror.path.resolve().relative_to(self.dest_root))
            except ValueError:
                continue
        return inside

    def acquire_sources(self) -> None:
        log.info("source acquisition", extra={"stage": "acquire"})
        for mirror in self.mirrors:
            ensure_present(self._runner, mirror)
            sync_to_latest(
                self._runner,
                mirror.path,
                branch=self.config.upstream_branch,
                remote=self.config.remote,
            )

    def resolve_tag(self) -> str:
        log.info("tag resolution", extra={"stage": "resolve"})
        tag = resolve_latest_tag(self._runner, self._mirror(self.config.client).path)
        log.info("latest upstream tag is %s", tag, extra={"stage": "resolve", "tag": tag})
        return tag

    def align(self, tag: str) -> None:
        log.info("tag alignment", extra={"stage": "align", "tag": tag})
        align_tag(self._runner, self.mirrors, tag)

    def generate(self) -> None:
        log.info("artifact generation", extra={"stage": "build"})
        build_server(self._builder, self._mirror(self.config.server).path)

    def sync_files(self) -> list[Path]:
        log.info("file sync", extra={"stage": "sync"})
        cfg = self.config
        server_path = self._mirror(cfg.server).path
        files = list_required_files(self._lister, server_path / cfg.app_descriptor)
        copied = purge_and_copy(
            self._dest(cfg.dest_src_dir),
            self._dest(cfg.dest_include_dir),
            server_path,
            files,
            pattern=cfg.vendored_pattern,
            include_dir=cfg.server_include_dir,
        )
        clean_build_artifacts(self._builder, server_path)
        return copied

    def publish(self, tag: str) -> PublishResult:
        log.info("publish", extra={"stage": "publish", "tag": tag})
        cfg = self.config
        stamp_version(
            self._dest(cfg.template_path),
            self._dest(cfg.output_path),
            tag,
            placeholder=cfg.placeholder,
        )
        message = render_commit_message(cfg.commit_message, tag)
        present_for_review(
            self._runner,
            self.dest_root,
            self._confirmer,
            exclude=self.mirrors_in_checkout(),
            echo=self._echo,
        )
        return publish(
            self._runner,
            self.dest_root,
            self._confirmer,
            tag,
            message,
            remote=cfg.remote,
        )

    def run(self) -> PublishResult:
        self.acquire_sources()
        tag = self.resolve_tag()
        self.align(tag)
        self.generate()
        self.sync_files()
        return self.publish(tag)
