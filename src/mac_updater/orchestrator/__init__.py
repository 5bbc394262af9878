"""Orchestrator module for step-based maintenance runs.

- Step / BuiltIn / CustomCommands: units of work and their two kinds of action
- BUILTIN_STEPS: canonical order of the built-in maintenance steps
- build_pipeline: filters the catalog and appends custom command steps
- MaintenanceOrchestrator: runs a pipeline and produces a RunReport
- summarize: pure aggregation of outcomes
"""

from .models import (
    StepStatus,
    RunMode,
    CommandRecord,
    StepResult,
    Outcome,
    RunSummary,
    ExecutionContext,
    RunReport,
    REASON_USER_DECLINED,
    REASON_RUN_CANCELLED,
    REASON_INTERRUPTED,
)
from .steps import BuiltIn, CustomCommands, Step, register_routine
from .catalog import BUILTIN_STEPS
from .pipeline import build_pipeline
from .cancellation import CancellationToken
from .progress import (
    ConfirmationRequested,
    StepStarted,
    StepFinished,
    ProgressSink,
    RichProgressSink,
    CompactProgressSink,
    LoggingProgressSink,
    RecordingProgressSink,
)
from .report import summarize, format_summary, save_run_report, load_run_report, list_run_reports
from .orchestrator import MaintenanceOrchestrator

__all__ = [
    "StepStatus",
    "RunMode",
    "CommandRecord",
    "StepResult",
    "Outcome",
    "RunSummary",
    "ExecutionContext",
    "RunReport",
    "REASON_USER_DECLINED",
    "REASON_RUN_CANCELLED",
    "REASON_INTERRUPTED",
    "BuiltIn",
    "CustomCommands",
    "Step",
    "register_routine",
    "BUILTIN_STEPS",
    "build_pipeline",
    "CancellationToken",
    "ConfirmationRequested",
    "StepStarted",
    "StepFinished",
    "ProgressSink",
    "RichProgressSink",
    "CompactProgressSink",
    "LoggingProgressSink",
    "RecordingProgressSink",
    "summarize",
    "format_summary",
    "save_run_report",
    "load_run_report",
    "list_run_reports",
    "MaintenanceOrchestrator",
]
