"""Run summaries and saved run logs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from ..utils.formatting import format_duration, human_size
from .models import Outcome, RunReport, RunSummary, StepStatus

logger = logging.getLogger(__name__)

RUN_LOG_PREFIX = "run_"


def summarize(outcomes: Iterable[Outcome]) -> RunSummary:
    """Count outcomes by status and add up their durations. Pure."""
    counts = {status: 0 for status in StepStatus}
    total_duration = 0.0
    for outcome in outcomes:
        counts[outcome.status] += 1
        total_duration += outcome.duration
    return RunSummary(
        succeeded=counts[StepStatus.SUCCESS],
        failed=counts[StepStatus.FAILED],
        skipped=counts[StepStatus.SKIPPED],
        total_duration=total_duration,
    )


def format_summary(report: RunReport) -> str:
    """One-line summary, e.g. '4 succeeded, 1 failed, 0 skipped in 1m 2s'."""
    summary = summarize(report.outcomes)
    text = (
        f"{summary.succeeded} succeeded, {summary.failed} failed, "
        f"{summary.skipped} skipped in {format_duration(summary.total_duration)}"
    )
    if report.cancelled:
        text += " (cancelled)"
    return text


def report_to_dict(report: RunReport) -> Dict[str, Any]:
    data = report.to_dict()
    data["summary"] = summarize(report.outcomes).to_dict()
    reclaimed = report.disk_reclaimed
    if reclaimed is not None:
        data["summary"]["disk_reclaimed"] = human_size(reclaimed)
    return data


def save_run_report(report: RunReport, directory: Path) -> Path:
    """Write the report as ``run_<timestamp>.json`` and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    stamp = report.started_at.strftime("%Y%m%d_%H%M%S")
    path = directory / f"{RUN_LOG_PREFIX}{stamp}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report_to_dict(report), f, indent=2, ensure_ascii=False)
    logger.info("📄 Run log saved to: %s", path)
    return path


def load_run_report(path: Path) -> Dict[str, Any]:
    """Read a saved run log back as a plain dict."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def list_run_reports(directory: Path) -> List[Path]:
    """Saved run logs, newest first."""
    if not directory.is_dir():
        return []
    return sorted(
        directory.glob(f"{RUN_LOG_PREFIX}*.json"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
