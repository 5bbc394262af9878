"""Maintenance orchestrator: runs a pipeline of steps front to back."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, TYPE_CHECKING

from ..interaction import InteractionRequest, InteractionResponse
from .cancellation import CancellationToken
from .models import (
    REASON_INTERRUPTED,
    REASON_RUN_CANCELLED,
    REASON_USER_DECLINED,
    ExecutionContext,
    Outcome,
    RunMode,
    RunReport,
    StepStatus,
)
from .progress import ConfirmationRequested, ProgressSink, StepFinished, StepStarted
from .report import format_summary, save_run_report
from .steps import Step

if TYPE_CHECKING:
    from ..interaction import UserInteractionHandler
    from ..local import LocalProbe
    from ..notification import Notifier

logger = logging.getLogger(__name__)


class MaintenanceOrchestrator:
    """
    Runs every step of a pipeline once, in order.

    A failing step never stops the run. The run ends early only when
    cancellation is requested; steps not yet attempted are then recorded as
    skipped. Every run ends with a finalized RunReport that is saved as a run
    log and handed to the notifier once.
    """

    def __init__(
        self,
        context: ExecutionContext,
        interaction_handler: "UserInteractionHandler",
        progress_sink: ProgressSink,
        notifier: Optional["Notifier"] = None,
        cancellation: Optional[CancellationToken] = None,
        probe: Optional["LocalProbe"] = None,
        runs_dir: Optional[Path] = None,
    ):
        self.context = context
        self.interaction_handler = interaction_handler
        self.progress_sink = progress_sink
        self.notifier = notifier
        self.cancellation = cancellation or CancellationToken()
        self.probe = probe
        self.runs_dir = runs_dir
        self.current_log_file: Optional[Path] = None

    def run(self, pipeline: Sequence[Step]) -> RunReport:
        """Execute the pipeline and return the finalized report."""
        report = RunReport(mode=self.context.mode)
        total = len(pipeline)

        logger.info("=" * 60)
        logger.info("🚀 MAINTENANCE RUN (%s mode)", self.context.mode.value)
        logger.info("=" * 60)
        logger.info("Total Steps: %d", total)
        for i, step in enumerate(pipeline, 1):
            logger.info("  %d. %s", i, step.description)

        self._record_start(report)

        with self.cancellation.install():
            for index, step in enumerate(pipeline, 1):
                if self.cancellation.requested:
                    break
                try:
                    outcome = self._attempt(step, index, total)
                except KeyboardInterrupt:
                    # raised outside step.run, e.g. by a progress sink
                    self.cancellation.cancel()
                    outcome = self._failed(step, REASON_INTERRUPTED, 0.0)
                report.outcomes.append(outcome)

        for step in pipeline[len(report.outcomes):]:
            logger.info("⏭️ Not run (cancelled): %s", step.description)
            report.outcomes.append(
                Outcome(
                    step_id=step.id,
                    description=step.description,
                    status=StepStatus.SKIPPED,
                    reason=REASON_RUN_CANCELLED,
                )
            )

        self._finalize(report)
        return report

    def _attempt(self, step: Step, index: int, total: int) -> Outcome:
        """Confirm (interactive mode), run and report one step."""
        if self.context.mode is RunMode.INTERACTIVE:
            self.progress_sink.emit(ConfirmationRequested(step=step, index=index, total=total))
            try:
                with self.cancellation.interruptible():
                    response = self.interaction_handler.ask(
                        InteractionRequest(question=f"Run '{step.description}'?")
                    )
            except KeyboardInterrupt:
                response = InteractionResponse.cancelled_response()
            if response.cancelled or self.cancellation.requested:
                self.cancellation.cancel()
                outcome = self._skipped(step, REASON_RUN_CANCELLED)
                self.progress_sink.emit(StepFinished(step=step, index=index, total=total, outcome=outcome))
                return outcome
            if not response.confirmed:
                logger.info("⏭️ [%d/%d] Declined: %s", index, total, step.description)
                outcome = self._skipped(step, REASON_USER_DECLINED)
                self.progress_sink.emit(StepFinished(step=step, index=index, total=total, outcome=outcome))
                return outcome

        logger.info("📍 Step %d/%d: %s", index, total, step.description)
        self.progress_sink.emit(StepStarted(step=step, index=index, total=total))

        start = time.monotonic()
        try:
            outcome = step.run(self.context)
        except KeyboardInterrupt:
            self.cancellation.cancel()
            outcome = self._failed(step, REASON_INTERRUPTED, time.monotonic() - start)
        except Exception as exc:
            logger.exception("Step %s raised", step.id)
            outcome = self._failed(step, f"{type(exc).__name__}: {exc}", time.monotonic() - start)

        if outcome.status is StepStatus.FAILED:
            logger.error("   ❌ %s: %s", step.description, outcome.reason)
        elif outcome.status is StepStatus.SKIPPED:
            logger.info("   ⏭️ %s: %s", step.description, outcome.reason)
        else:
            logger.info("   ✅ %s (%.1fs)", step.description, outcome.duration)

        self.progress_sink.emit(StepFinished(step=step, index=index, total=total, outcome=outcome))
        return outcome

    @staticmethod
    def _skipped(step: Step, reason: str) -> Outcome:
        return Outcome(
            step_id=step.id,
            description=step.description,
            status=StepStatus.SKIPPED,
            reason=reason,
        )

    @staticmethod
    def _failed(step: Step, reason: str, duration: float) -> Outcome:
        return Outcome(
            step_id=step.id,
            description=step.description,
            status=StepStatus.FAILED,
            duration=duration,
            reason=reason,
        )

    def _wants_stats(self) -> bool:
        return self.probe is not None and self.context.config.notification_settings.include_stats

    def _record_start(self, report: RunReport) -> None:
        if self.probe is None:
            return
        report.host = self.probe.collect().to_dict()
        if self._wants_stats():
            usage = self.probe.disk_usage()
            report.disk_free_before = usage.free_bytes if usage else None

    def _finalize(self, report: RunReport) -> None:
        """Close the report, save the run log and notify."""
        if self._wants_stats():
            usage = self.probe.disk_usage()
            report.disk_free_after = usage.free_bytes if usage else None
        report.cancelled = self.cancellation.requested
        report.finished_at = datetime.now()

        logger.info("=" * 60)
        if report.cancelled:
            logger.warning("🛑 Run cancelled: %s", format_summary(report))
        else:
            logger.info("🎉 Run completed: %s", format_summary(report))
        logger.info("=" * 60)

        if self.runs_dir is not None:
            try:
                self.current_log_file = save_run_report(report, self.runs_dir)
            except OSError as exc:
                logger.warning("Could not save run log to %s: %s", self.runs_dir, exc)

        if self.notifier is not None:
            self.notifier.notify(report)
