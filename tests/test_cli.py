from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from common_sync import cli
from common_sync.errors import AbortedError
from common_sync.release import PublishResult, TagStrategy


class _StubPipeline:
    instances: list[_StubPipeline] = []
    error: Exception | None = None

    def __init__(self, config, dest_root, **collaborators) -> None:
        self.config = config
        self.dest_root = dest_root
        self.collaborators = collaborators
        _StubPipeline.instances.append(self)

    def run(self) -> PublishResult:
        if _StubPipeline.error is not None:
            raise _StubPipeline.error
        return PublishResult(tag="v3.6.1", strategy=TagStrategy.NEW_TAG, committed=True, tagged=True, forced=False)


@pytest.fixture()
def stub_pipeline(monkeypatch: pytest.MonkeyPatch) -> type[_StubPipeline]:
    _StubPipeline.instances = []
    _StubPipeline.error = None
    monkeypatch.setattr(cli, "SyncPipeline", _StubPipeline)
    return _StubPipeline


def test_run_success_applies_overrides(tmp_path: Path, stub_pipeline: type[_StubPipeline]) -> None:
    rc = cli.main(["run", "--dest", str(tmp_path), "--cache-dir", str(tmp_path / "mirrors")])

    assert rc == 0
    (p,) = stub_pipeline.instances
    assert p.dest_root == tmp_path.resolve()
    assert p.config.server.path == tmp_path / "mirrors" / "rabbitmq-server"
    assert set(p.collaborators) == {"runner", "builder", "lister", "confirmer"}


def test_sync_error_maps_to_exit_code_1(tmp_path: Path, stub_pipeline: type[_StubPipeline]) -> None:
    stub_pipeline.error = AbortedError("Aborted")
    assert cli.main(["run", "--dest", str(tmp_path)]) == 1


def test_bad_config_maps_to_exit_code_1(tmp_path: Path, stub_pipeline: type[_StubPipeline]) -> None:
    assert cli.main(["run", "--config", str(tmp_path / "missing.yaml")]) == 1
    assert stub_pipeline.instances == []


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])


def test_log_flags_follow_the_subcommand(tmp_path: Path, stub_pipeline: type[_StubPipeline]) -> None:
    rc = cli.main(["run", "--dest", str(tmp_path), "--log-level", "DEBUG"])

    assert rc == 0
    assert logging.getLogger().level == logging.DEBUG


def test_log_json_writes_json_lines(
    tmp_path: Path, stub_pipeline: type[_StubPipeline], capsys: pytest.CaptureFixture[str]
) -> None:
    rc = cli.main(["run", "--dest", str(tmp_path), "--log-json"])

    assert rc == 0
    lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
    assert lines
    records = [json.loads(line) for line in lines]
    for record in records:
        assert {"level", "logger", "message"} <= set(record)
    assert any(r["message"] == "done: v3.6.1 (new_tag)" for r in records)
