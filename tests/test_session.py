"""Tests for the local command executor (runs real /bin/bash one-liners)."""

import shutil
from pathlib import Path

import pytest

from mac_updater.local import CommandExecutor
from mac_updater.local.session import EXIT_NOT_FOUND

pytestmark = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")


@pytest.fixture
def runner(tmp_path):
    lines = []
    executor = CommandExecutor(working_dir=str(tmp_path), on_output=lines.append)
    executor.lines = lines
    return executor


class TestCommandExecutor:
    def test_success_captures_output(self, runner):
        result = runner.execute("echo hello")
        assert result.ok
        assert result.exit_code == 0
        assert result.stdout == "hello"
        assert runner.lines == []

    def test_non_zero_exit_is_reported_not_raised(self, runner):
        result = runner.execute("echo oops >&2; exit 3")
        assert not result.ok
        assert result.exit_code == 3
        assert result.stderr == "oops"

    def test_unknown_program_exits_127(self, runner):
        result = runner.execute("definitely-not-a-real-program-xyz")
        assert result.exit_code == EXIT_NOT_FOUND
        assert not result.ok

    def test_missing_working_directory_is_synthetic_failure(self, tmp_path):
        executor = CommandExecutor(working_dir=str(tmp_path / "gone"))
        result = executor.execute("true")
        assert result.exit_code == EXIT_NOT_FOUND
        assert "failed to start" in result.stderr

    def test_streaming_forwards_lines_in_order(self, runner):
        result = runner.execute("echo one; echo two >&2; echo three", capture=False)
        assert result.ok
        assert [line.strip() for line in runner.lines] == ["one", "two", "three"]
        assert result.stdout.splitlines() == ["one", "two", "three"]

    def test_streaming_failure_keeps_output_tail(self, runner):
        result = runner.execute("for i in 1 2 3 4 5 6 7; do echo line$i; done; exit 1", capture=False)
        assert result.exit_code == 1
        assert result.stderr.splitlines() == ["line3", "line4", "line5", "line6", "line7"]

    @pytest.mark.parametrize("capture", [True, False])
    def test_invalid_utf8_output_is_replaced(self, runner, capture):
        result = runner.execute("printf 'ok\\xff\\xfe'; exit 0", capture=capture)
        assert result.ok
        assert result.stdout.startswith("ok")
        assert "�" in result.stdout

    def test_streaming_reaps_child_when_output_handler_raises(self, tmp_path):
        def explode(line):
            raise RuntimeError("sink broke")

        executor = CommandExecutor(working_dir=str(tmp_path), on_output=explode)
        with pytest.raises(RuntimeError):
            executor.execute("echo one; sleep 30", capture=False)

    def test_runs_in_working_directory(self, runner, tmp_path):
        result = runner.execute("pwd -P")
        assert Path(result.stdout) == tmp_path.resolve()

    def test_which_finds_shell(self, runner):
        assert runner.which("bash")
        assert runner.which("definitely-not-a-real-program-xyz") is None
