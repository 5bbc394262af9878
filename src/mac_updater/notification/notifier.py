"""End-of-run notifications."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List

from ..config import NotificationSettings
from ..orchestrator.models import RunReport, RunSummary
from ..orchestrator.progress import STATUS_ICONS, outcome_note
from ..orchestrator.report import format_summary, summarize
from ..utils.formatting import human_size

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "mac-updater"
OSASCRIPT = "/usr/bin/osascript"


class NotificationSink(ABC):
    """Delivers one finished notification somewhere the user will see it."""

    @abstractmethod
    def send(self, title: str, message: str) -> None:
        """Deliver the notification. Failures are reported via logging only."""


def _applescript_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class MacNotificationSink(NotificationSink):
    """Notification Center banner through ``osascript``."""

    def send(self, title: str, message: str) -> None:
        script = (
            f'display notification "{_applescript_escape(message)}" '
            f'with title "{_applescript_escape(title)}"'
        )
        try:
            subprocess.run(
                [OSASCRIPT, "-e", script],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            logger.warning("Notification failed: %s", exc)


class Notifier:
    """Decides whether a finished run is announced, and with what text."""

    def __init__(self, settings: NotificationSettings, sink: NotificationSink) -> None:
        self.settings = settings
        self.sink = sink

    def should_notify(self, summary: RunSummary) -> bool:
        if not self.settings.enabled:
            return False
        return not self.settings.success_only or summary.failed == 0

    def build_message(self, report: RunReport) -> str:
        lines: List[str] = [format_summary(report)]
        if self.settings.include_stats:
            reclaimed = report.disk_reclaimed
            if reclaimed is not None and reclaimed > 0:
                lines.append(f"Disk space reclaimed: {human_size(reclaimed)}")
            for outcome in report.outcomes:
                line = f"{STATUS_ICONS[outcome.status]} {outcome.description}"
                note = outcome_note(outcome)
                if note:
                    line += f" ({note})"
                lines.append(line)
        return "\n".join(lines)

    def notify(self, report: RunReport) -> bool:
        """Send at most one notification for ``report``. Returns True if sent."""
        summary = summarize(report.outcomes)
        if not self.should_notify(summary):
            logger.info("Notification suppressed by notification_settings")
            return False
        try:
            self.sink.send(NOTIFICATION_TITLE, self.build_message(report))
        except Exception as exc:
            logger.warning("Notification sink raised: %s", exc)
            return False
        logger.info("🔔 Notification sent")
        return True
