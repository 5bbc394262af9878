"""Data models for the orchestrator module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import AppConfig
    from ..local import CommandExecutor


class StepStatus(Enum):
    """Final state of one step attempt."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunMode(Enum):
    """How the orchestrator treats each step before running it."""
    INTERACTIVE = "interactive"   # ask for confirmation per step
    QUIET = "quiet"               # run every step without asking


# Reasons recorded by the orchestrator itself
REASON_USER_DECLINED = "user declined"
REASON_RUN_CANCELLED = "run cancelled"
REASON_INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class CommandRecord:
    """One executed command inside a step."""
    command: str
    success: bool
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "success": self.success,
            "exit_code": self.exit_code,
            # keep run logs small
            "stdout": self.stdout[-1000:],
            "stderr": self.stderr[-500:],
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class StepResult:
    """What a step routine reports back, before timing is attached."""
    status: StepStatus
    reason: Optional[str] = None    # why it failed or was skipped
    detail: Optional[str] = None    # human-readable note on success
    commands: Tuple[CommandRecord, ...] = ()

    @classmethod
    def succeeded(
        cls,
        detail: Optional[str] = None,
        commands: Tuple[CommandRecord, ...] = (),
    ) -> "StepResult":
        """Step completed."""
        return cls(status=StepStatus.SUCCESS, detail=detail, commands=tuple(commands))

    @classmethod
    def failed(cls, reason: str, commands: Tuple[CommandRecord, ...] = ()) -> "StepResult":
        """Step attempted and failed."""
        return cls(status=StepStatus.FAILED, reason=reason, commands=tuple(commands))

    @classmethod
    def skipped(cls, reason: str, commands: Tuple[CommandRecord, ...] = ()) -> "StepResult":
        """Step not attempted."""
        return cls(status=StepStatus.SKIPPED, reason=reason, commands=tuple(commands))


@dataclass(frozen=True)
class Outcome:
    """The recorded result of attempting one step. Immutable once produced."""
    step_id: str
    description: str
    status: StepStatus
    duration: float = 0.0
    reason: Optional[str] = None
    detail: Optional[str] = None
    commands: Tuple[CommandRecord, ...] = ()

    @classmethod
    def from_result(
        cls, step_id: str, description: str, result: StepResult, duration: float
    ) -> "Outcome":
        return cls(
            step_id=step_id,
            description=description,
            status=result.status,
            duration=duration,
            reason=result.reason,
            detail=result.detail,
            commands=result.commands,
        )

    @property
    def succeeded(self) -> bool:
        return self.status is StepStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "description": self.description,
            "status": self.status.value,
            "duration_seconds": round(self.duration, 3),
            "reason": self.reason,
            "detail": self.detail,
            "commands": [cmd.to_dict() for cmd in self.commands],
        }


@dataclass(frozen=True)
class RunSummary:
    """Counts and total time over a sequence of outcomes."""
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    total_duration: float = 0.0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.skipped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "total": self.total,
            "duration_seconds": round(self.total_duration, 3),
        }


@dataclass(frozen=True)
class ExecutionContext:
    """Shared read-only state handed to every step during one run."""
    mode: RunMode
    config: "AppConfig"
    executor: "CommandExecutor"
    home: Path = field(default_factory=Path.home)


@dataclass
class RunReport:
    """Outcomes of one run, in pipeline order.

    Owned by the orchestrator; nothing else appends to it.
    """
    mode: RunMode
    outcomes: List[Outcome] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    cancelled: bool = False
    host: Dict[str, Any] = field(default_factory=dict)
    disk_free_before: Optional[int] = None
    disk_free_after: Optional[int] = None

    @property
    def finalized(self) -> bool:
        return self.finished_at is not None

    @property
    def disk_reclaimed(self) -> Optional[int]:
        if self.disk_free_before is None or self.disk_free_after is None:
            return None
        return self.disk_free_after - self.disk_free_before

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": "1.0",
            "mode": self.mode.value,
            "start_time": self.started_at.isoformat(),
            "end_time": self.finished_at.isoformat() if self.finished_at else None,
            "cancelled": self.cancelled,
            "host": self.host,
            "disk_free_before": self.disk_free_before,
            "disk_free_after": self.disk_free_after,
            "steps": [outcome.to_dict() for outcome in self.outcomes],
        }
