"""Local execution: running commands and probing the machine."""

from .session import CommandExecutor, ExecutionResult
from .probe import DiskUsage, LocalHostFacts, LocalProbe

__all__ = ["CommandExecutor", "ExecutionResult", "DiskUsage", "LocalHostFacts", "LocalProbe"]
