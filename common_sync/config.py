"""
config.py

Responsibility: Load the optional YAML sync configuration into a typed model.

Every setting has a default matching the upstream RabbitMQ layout, so running
without a config file is the normal case. The CLI and pipeline treat the
returned `SyncConfig` as the single source of truth.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from common_sync.errors import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

DEFAULT_CACHE_DIR = "build_cache"


@dataclass(frozen=True)
class MirrorConfig:
    """One upstream repository mirrored under the cache directory."""

    name: str
    url: str
    path: Path


def _default_mirror(name: str, repo: str) -> MirrorConfig:
    return MirrorConfig(
        name=name,
        url=f"https://github.com/rabbitmq/{repo}.git",
        path=Path(DEFAULT_CACHE_DIR) / repo,
    )


@dataclass(frozen=True)
class SyncConfig:
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    client: MirrorConfig = field(default_factory=lambda: _default_mirror("client", "rabbitmq-erlang-client"))
    server: MirrorConfig = field(default_factory=lambda: _default_mirror("server", "rabbitmq-server"))
    codegen: MirrorConfig = field(default_factory=lambda: _default_mirror("codegen", "rabbitmq-codegen"))
    upstream_branch: str = "master"
    remote: str = "origin"

    dest_src_dir: Path = Path("src")
    dest_include_dir: Path = Path("include")
    vendored_pattern: str = "*.erl"

    app_descriptor: Path = Path("ebin/rabbit_app.in")
    deps_command: list[str] = field(default_factory=lambda: ["./read_common_deps"])
    build_command: list[str] = field(default_factory=lambda: ["make"])
    clean_command: list[str] = field(default_factory=lambda: ["make", "clean"])
    server_include_dir: Path = Path("include")
    log_tail_lines: int = 10

    template_path: Path = Path("rabbit_common.app.src.in")
    output_path: Path = Path("src/rabbit_common.app.src")
    placeholder: str = "%%VERSION%%"
    commit_message: str = "Update rabbit_common to {{ tag }}"

    @property
    def mirrors(self) -> tuple[MirrorConfig, MirrorConfig, MirrorConfig]:
        return (self.client, self.server, self.codegen)

    def with_cache_dir(self, cache_dir: str | Path) -> SyncConfig:
        """
        Return a copy whose mirrors live under `cache_dir`.

        Only mirrors still sitting under the old cache directory are moved;
        explicitly configured paths elsewhere are kept.
        """
        new_root = Path(cache_dir)

        def move(m: MirrorConfig) -> MirrorConfig:
            try:
                rel = m.path.relative_to(self.cache_dir)
            except ValueError:
                return m
            return replace(m, path=new_root / rel)

        return replace(
            self,
            cache_dir=new_root,
            client=move(self.client),
            server=move(self.server),
            codegen=move(self.codegen),
        )


def _expand_env(obj: Any, *, path: str) -> Any:
    if isinstance(obj, str):

        def repl(match: re.Match[str]) -> str:
            key = match.group(1)
            if not os.environ.get(key):
                raise ConfigError(f"environment variable {key!r} is not set", path=path)
            return os.environ[key]

        return _ENV_PATTERN.sub(repl, obj)
    if isinstance(obj, list):
        return [_expand_env(v, path=path) for v in obj]
    if isinstance(obj, dict):
        return {k: _expand_env(v, path=f"{path}.{k}" if path else str(k)) for k, v in obj.items()}
    return obj


def _as_command(value: Any, *, path: str) -> list[str]:
    if isinstance(value, str):
        parts = value.split()
    elif isinstance(value, list) and all(isinstance(v, str) for v in value):
        parts = list(value)
    else:
        raise ConfigError("must be a string or a list of strings", path=path)
    if not parts:
        raise ConfigError("command must not be empty", path=path)
    return parts


def _parse_mirror(name: str, raw: Any, default: MirrorConfig, cache_dir: Path) -> MirrorConfig:
    if raw is None:
        return replace(default, path=cache_dir / default.path.name)
    if not isinstance(raw, dict):
        raise ConfigError("must be a mapping with `url` and/or `path`", path=f"mirrors.{name}")
    unknown = set(raw) - {"url", "path"}
    if unknown:
        raise ConfigError(f"unknown keys: {', '.join(sorted(unknown))}", path=f"mirrors.{name}")
    url = str(raw.get("url") or default.url).strip()
    path = Path(str(raw["path"])) if raw.get("path") else cache_dir / default.path.name
    return MirrorConfig(name=name, url=url, path=path)


_PATH_KEYS = {
    "dest_src_dir",
    "dest_include_dir",
    "app_descriptor",
    "server_include_dir",
    "template_path",
    "output_path",
}
_STR_KEYS = {"upstream_branch", "remote", "vendored_pattern", "placeholder", "commit_message"}
_COMMAND_KEYS = {"deps_command", "build_command", "clean_command"}
_KNOWN_KEYS = {f.name for f in fields(SyncConfig)} - {"client", "server", "codegen"} | {"mirrors"}


def config_from_mapping(data: dict[str, Any]) -> SyncConfig:
    """Build a `SyncConfig` from an already-parsed mapping (YAML document)."""
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(f"unknown keys: {', '.join(sorted(unknown))}")

    data = _expand_env(data, path="")
    base = SyncConfig()
    overrides: dict[str, Any] = {}

    cache_dir = Path(str(data["cache_dir"])) if data.get("cache_dir") else base.cache_dir
    overrides["cache_dir"] = cache_dir

    mirrors_raw = data.get("mirrors") or {}
    if not isinstance(mirrors_raw, dict):
        raise ConfigError("must be a mapping", path="mirrors")
    unknown_mirrors = set(mirrors_raw) - {"client", "server", "codegen"}
    if unknown_mirrors:
        raise ConfigError(f"unknown mirrors: {', '.join(sorted(unknown_mirrors))}", path="mirrors")
    for name in ("client", "server", "codegen"):
        overrides[name] = _parse_mirror(name, mirrors_raw.get(name), getattr(base, name), cache_dir)

    for key in _PATH_KEYS & set(data):
        overrides[key] = Path(str(data[key]))
    for key in _STR_KEYS & set(data):
        value = data[key]
        if not isinstance(value, str) or not value:
            raise ConfigError("must be a non-empty string", path=key)
        overrides[key] = value
    for key in _COMMAND_KEYS & set(data):
        overrides[key] = _as_command(data[key], path=key)

    if "log_tail_lines" in data:
        tail = data["log_tail_lines"]
        if not isinstance(tail, int) or isinstance(tail, bool) or tail < 1:
            raise ConfigError("must be a positive integer", path="log_tail_lines")
        overrides["log_tail_lines"] = tail

    return replace(base, **overrides)


def load_config(config_path: str | Path | None) -> SyncConfig:
    """
    Load a YAML config file into a `SyncConfig`.

    `None` returns the defaults. An empty file is the same as no overrides.
    """
    if config_path is None:
        return SyncConfig()
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", path=str(path)) from e
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping/object at the top level", path=str(path))
    return config_from_mapping(data)
