from __future__ import annotations

from pathlib import Path

import pytest

from common_sync.config import MirrorConfig
from common_sync.errors import CommandError, SyncError
from common_sync.mirrors import align_tag, ensure_present, resolve_latest_tag, sync_to_latest
from tests.fakes import RecordingRunner


def _mirror(tmp_path: Path, name: str = "server") -> MirrorConfig:
    return MirrorConfig(name=name, url=f"https://example.invalid/{name}.git", path=tmp_path / "cache" / name)


def test_ensure_present_clones_missing_mirror(tmp_path: Path) -> None:
    runner = RecordingRunner()
    mirror = _mirror(tmp_path)

    assert ensure_present(runner, mirror) is True
    assert runner.commands() == [["git", "clone", mirror.url, str(mirror.path)]]
    assert mirror.path.parent.is_dir()


def test_ensure_present_is_noop_for_existing_mirror(tmp_path: Path) -> None:
    runner = RecordingRunner()
    mirror = _mirror(tmp_path)
    mirror.path.mkdir(parents=True)

    assert ensure_present(runner, mirror) is False
    assert runner.calls == []


def test_sync_to_latest_order(tmp_path: Path) -> None:
    runner = RecordingRunner()
    sync_to_latest(runner, tmp_path)
    assert runner.commands(cwd=tmp_path) == [
        ["git", "checkout", "master"],
        ["git", "fetch", "origin"],
        ["git", "pull", "origin", "master"],
    ]


@pytest.mark.parametrize("failing", [["git", "checkout", "master"], ["git", "fetch", "origin"]])
def test_sync_to_latest_stops_at_first_failure(tmp_path: Path, failing: list[str]) -> None:
    runner = RecordingRunner()
    runner.fail_on(failing)

    with pytest.raises(CommandError):
        sync_to_latest(runner, tmp_path)
    assert runner.commands()[-1] == failing
    assert ["git", "pull", "origin", "master"] not in runner.commands()


def test_resolve_latest_tag_strips_output(tmp_path: Path) -> None:
    runner = RecordingRunner()
    runner.set_output(["git", "describe", "--abbrev=0", "--tags"], "rabbitmq_v3_6_1\n")
    assert resolve_latest_tag(runner, tmp_path) == "rabbitmq_v3_6_1"


def test_resolve_latest_tag_without_tags_is_fatal(tmp_path: Path) -> None:
    runner = RecordingRunner()
    with pytest.raises(SyncError):
        resolve_latest_tag(runner, tmp_path)

    failing = RecordingRunner()
    failing.fail_on(["git", "describe", "--abbrev=0", "--tags"])
    with pytest.raises(CommandError):
        resolve_latest_tag(failing, tmp_path)


def test_align_tag_checks_out_every_mirror(tmp_path: Path) -> None:
    runner = RecordingRunner()
    mirrors = [_mirror(tmp_path, n) for n in ("client", "server", "codegen")]

    align_tag(runner, mirrors, "v3.6.1")
    assert runner.calls == [(m.path, ["git", "checkout", "v3.6.1"]) for m in mirrors]
