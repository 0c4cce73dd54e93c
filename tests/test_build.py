from __future__ import annotations

import logging
from pathlib import Path

import pytest

from common_sync.build import MakeBuilder, build_server, clean_build_artifacts
from common_sync.errors import BuildError, CommandError
from tests.fakes import FakeBuilder, RecordingRunner


class _FailingRunner(RecordingRunner):
    def __init__(self, output: str) -> None:
        super().__init__()
        self.output = output

    def __call__(self, cmd: list[str], *, cwd: Path, quiet: bool = False) -> str:
        self.calls.append((Path(cwd), list(cmd)))
        raise CommandError(list(cmd), 2, self.output)


def test_make_builder_success(tmp_path: Path) -> None:
    runner = RecordingRunner()
    runner.set_output(["make"], "cc a\ncc b\n")
    result = MakeBuilder(runner).build(tmp_path)
    assert result.success
    assert result.log_tail == ["cc a", "cc b"]
    assert runner.calls == [(tmp_path, ["make"])]


def test_make_builder_failure_keeps_last_ten_lines(tmp_path: Path) -> None:
    output = "\n".join(f"line {i}" for i in range(25))
    result = MakeBuilder(_FailingRunner(output)).build(tmp_path)
    assert not result.success
    assert result.log_tail == [f"line {i}" for i in range(15, 25)]


def test_build_server_failure_logs_tail_and_raises(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    builder = FakeBuilder(success=False, log_tail=["make: *** [all] Error 1"])
    with caplog.at_level(logging.ERROR):
        with pytest.raises(BuildError) as ei:
            build_server(builder, tmp_path)
    assert ei.value.log_tail == ["make: *** [all] Error 1"]
    assert "make: *** [all] Error 1" in caplog.text


def test_clean_is_quiet_and_best_effort(tmp_path: Path) -> None:
    runner = RecordingRunner()
    runner.fail_on(["make", "clean"])
    clean_build_artifacts(MakeBuilder(runner), tmp_path)
    assert runner.calls == [(tmp_path, ["make", "clean"])]

    builder = FakeBuilder(clean_fails=True)
    clean_build_artifacts(builder, tmp_path)
    assert builder.cleaned == [tmp_path]
