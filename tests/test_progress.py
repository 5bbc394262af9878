"""Tests for progress sinks."""

import io

from rich.console import Console

from mac_updater.orchestrator import (
    BUILTIN_STEPS,
    CompactProgressSink,
    ConfirmationRequested,
    LoggingProgressSink,
    Outcome,
    RichProgressSink,
    StepFinished,
    StepStarted,
    StepStatus,
)

STEP = BUILTIN_STEPS[0]


def _console():
    return Console(file=io.StringIO(), force_terminal=False, width=120)


def _finished(status, reason=None, detail=None):
    outcome = Outcome(
        step_id=STEP.id,
        description=STEP.description,
        status=status,
        duration=2.5,
        reason=reason,
        detail=detail,
    )
    return StepFinished(step=STEP, index=1, total=3, outcome=outcome)


class TestCompactProgressSink:
    def test_one_line_per_finished_step(self):
        console = _console()
        sink = CompactProgressSink(console)
        sink.emit(StepStarted(step=STEP, index=1, total=3))
        sink.write_output("noise\n")
        sink.emit(_finished(StepStatus.FAILED, reason="`brew update` exited with 1"))

        lines = console.file.getvalue().splitlines()
        assert lines == ["❌ Update Homebrew (`brew update` exited with 1, 2.5s)"]

    def test_skipped_has_no_duration(self):
        console = _console()
        CompactProgressSink(console).emit(_finished(StepStatus.SKIPPED, reason="brew not found"))
        assert console.file.getvalue().strip() == "⏭️ Update Homebrew (brew not found)"


class TestRichProgressSink:
    def test_renders_confirmation_output_and_result(self):
        console = _console()
        sink = RichProgressSink(console)
        sink.emit(ConfirmationRequested(step=STEP, index=1, total=3))
        sink.emit(StepStarted(step=STEP, index=1, total=3))
        sink.write_output("==> Updating [core]\n")
        sink.emit(_finished(StepStatus.SUCCESS, detail="3 command(s) completed"))

        text = console.file.getvalue()
        assert "[1/3] Update Homebrew" in text
        assert "==> Updating [core]" in text
        assert "✅ Update Homebrew (3 command(s) completed, 2.5s)" in text


class TestLoggingProgressSink:
    def test_logs_each_event(self, caplog):
        sink = LoggingProgressSink()
        with caplog.at_level("INFO"):
            sink.emit(StepStarted(step=STEP, index=1, total=3))
            sink.emit(_finished(StepStatus.SUCCESS))
        assert "Started: Update Homebrew" in caplog.text
        assert "success: Update Homebrew" in caplog.text
