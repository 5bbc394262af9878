"""Tests for run summaries and saved run logs."""

import os
from datetime import datetime

from mac_updater.orchestrator import (
    Outcome,
    RunMode,
    RunReport,
    StepStatus,
    format_summary,
    list_run_reports,
    load_run_report,
    save_run_report,
    summarize,
)
from mac_updater.orchestrator.models import CommandRecord


def _outcome(status, duration=1.0, name="Step"):
    return Outcome(step_id=name.lower(), description=name, status=status, duration=duration)


OUTCOMES = [
    _outcome(StepStatus.SUCCESS, 2.0, "A"),
    _outcome(StepStatus.FAILED, 1.5, "B"),
    _outcome(StepStatus.SKIPPED, 0.0, "C"),
    _outcome(StepStatus.SUCCESS, 0.5, "D"),
]


class TestSummarize:
    def test_counts_and_duration(self):
        summary = summarize(OUTCOMES)
        assert (summary.succeeded, summary.failed, summary.skipped) == (2, 1, 1)
        assert summary.total == 4
        assert summary.total_duration == 4.0

    def test_is_pure(self):
        assert summarize(OUTCOMES) == summarize(OUTCOMES)
        assert summarize(iter(OUTCOMES)) == summarize(list(OUTCOMES))

    def test_empty(self):
        summary = summarize([])
        assert summary.total == 0
        assert summary.total_duration == 0.0


class TestFormatSummary:
    def test_plain(self):
        report = RunReport(mode=RunMode.QUIET, outcomes=list(OUTCOMES))
        assert format_summary(report) == "2 succeeded, 1 failed, 1 skipped in 4.0s"

    def test_cancelled(self):
        report = RunReport(mode=RunMode.QUIET, outcomes=list(OUTCOMES), cancelled=True)
        assert format_summary(report).endswith("(cancelled)")


class TestRunLogs:
    def test_save_and_load(self, tmp_path):
        record = CommandRecord(command="brew update", success=False, exit_code=1, stderr="e" * 2000)
        outcome = Outcome(
            step_id="homebrew",
            description="Update Homebrew",
            status=StepStatus.FAILED,
            reason="`brew update` exited with 1",
            commands=(record,),
        )
        report = RunReport(
            mode=RunMode.INTERACTIVE,
            outcomes=[outcome],
            started_at=datetime(2024, 5, 1, 9, 30, 0),
            finished_at=datetime(2024, 5, 1, 9, 31, 0),
            disk_free_before=100,
            disk_free_after=2148,
        )

        path = save_run_report(report, tmp_path / "runs")
        data = load_run_report(path)

        assert path.name == "run_20240501_093000.json"
        assert data["mode"] == "interactive"
        assert data["summary"]["failed"] == 1
        assert data["summary"]["disk_reclaimed"] == "2.0 KB"
        assert data["steps"][0]["status"] == "failed"
        assert len(data["steps"][0]["commands"][0]["stderr"]) == 500

    def test_list_newest_first(self, tmp_path):
        older = tmp_path / "run_20240101_000000.json"
        newer = tmp_path / "run_20240102_000000.json"
        for path in (older, newer):
            path.write_text("{}")
        os.utime(older, (1_000, 1_000))
        (tmp_path / "notes.json").write_text("{}")

        assert list_run_reports(tmp_path) == [newer, older]
        assert list_run_reports(tmp_path / "missing") == []
