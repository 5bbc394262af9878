"""Progress events emitted by the orchestrator, and the sinks that render them.

The orchestrator only ever calls ``sink.emit(event)``; how (and whether) an
event is shown is entirely up to the sink.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

from rich.console import Console
from rich.markup import escape
from rich.status import Status

from ..utils.formatting import format_duration
from .models import Outcome, StepStatus
from .steps import Step

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    StepStatus.SUCCESS: "✅",
    StepStatus.FAILED: "❌",
    StepStatus.SKIPPED: "⏭️",
}

STATUS_STYLES = {
    StepStatus.SUCCESS: "green",
    StepStatus.FAILED: "bold red",
    StepStatus.SKIPPED: "yellow",
}


@dataclass(frozen=True)
class ConfirmationRequested:
    """Interactive mode is about to ask whether to run ``step``."""
    step: Step
    index: int   # 1-based
    total: int


@dataclass(frozen=True)
class StepStarted:
    step: Step
    index: int
    total: int


@dataclass(frozen=True)
class StepFinished:
    step: Step
    index: int
    total: int
    outcome: Outcome


ProgressEvent = Union[ConfirmationRequested, StepStarted, StepFinished]


def outcome_note(outcome: Outcome) -> str:
    """Short trailing note for a finished step: reason, or detail, plus duration."""
    parts = []
    text = outcome.detail if outcome.succeeded else outcome.reason
    if text:
        parts.append(text)
    if outcome.status is not StepStatus.SKIPPED:
        parts.append(format_duration(outcome.duration))
    return ", ".join(parts)


class ProgressSink(ABC):
    """Receives the ordered event stream of one run."""

    @abstractmethod
    def emit(self, event: ProgressEvent) -> None:
        """Handle one event. Must not raise for rendering problems."""

    def write_output(self, line: str) -> None:
        """Live output of a streamed command. Ignored unless overridden."""


class RichProgressSink(ProgressSink):
    """Full terminal rendering: a spinner per step and live command output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self._status: Optional[Status] = None

    def emit(self, event: ProgressEvent) -> None:
        if isinstance(event, ConfirmationRequested):
            self.console.print(
                f"\n[bold cyan][{event.index}/{event.total}][/bold cyan] "
                f"{escape(event.step.description)}"
            )
        elif isinstance(event, StepStarted):
            self._stop_spinner()
            self._status = self.console.status(
                f"[{event.index}/{event.total}] {escape(event.step.description)}...",
                spinner="dots",
            )
            self._status.start()
        elif isinstance(event, StepFinished):
            self._stop_spinner()
            outcome = event.outcome
            style = STATUS_STYLES[outcome.status]
            note = outcome_note(outcome)
            line = (
                f"[{event.index}/{event.total}] {STATUS_ICONS[outcome.status]} "
                f"[{style}]{escape(event.step.description)}[/{style}]"
            )
            if note:
                line += f" [dim]({escape(note)})[/dim]"
            self.console.print(line)

    def write_output(self, line: str) -> None:
        # printed above the live spinner
        self.console.print(line.rstrip("\n"), markup=False, highlight=False, style="dim")

    def _stop_spinner(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


class CompactProgressSink(ProgressSink):
    """One line per finished step, no spinner, no command output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def emit(self, event: ProgressEvent) -> None:
        if not isinstance(event, StepFinished):
            return
        outcome = event.outcome
        note = outcome_note(outcome)
        suffix = f" ({escape(note)})" if note else ""
        self.console.print(
            f"{STATUS_ICONS[outcome.status]} {escape(event.step.description)}{suffix}",
            highlight=False,
        )


class LoggingProgressSink(ProgressSink):
    """Writes the event stream to the application log."""

    def emit(self, event: ProgressEvent) -> None:
        if isinstance(event, ConfirmationRequested):
            logger.info("❓ [%d/%d] Confirm: %s", event.index, event.total, event.step.description)
        elif isinstance(event, StepStarted):
            logger.info("📍 [%d/%d] Started: %s", event.index, event.total, event.step.description)
        elif isinstance(event, StepFinished):
            logger.info(
                "%s [%d/%d] %s: %s",
                STATUS_ICONS[event.outcome.status],
                event.index,
                event.total,
                event.outcome.status.value,
                event.step.description,
            )


class RecordingProgressSink(ProgressSink):
    """Keeps every event in order; used by tests and embedding callers."""

    def __init__(self) -> None:
        self.events: List[ProgressEvent] = []
        self.output: List[str] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def write_output(self, line: str) -> None:
        self.output.append(line)

    @property
    def kinds(self) -> List[str]:
        """Event class names in order, e.g. ['StepStarted', 'StepFinished']."""
        return [type(event).__name__ for event in self.events]
