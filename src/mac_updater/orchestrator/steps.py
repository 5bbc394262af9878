"""Steps: named units of maintenance work.

A Step carries one of two actions:

- BuiltIn(tag): a fixed routine registered under ``tag`` (see catalog.py)
- CustomCommands(commands): shell commands taken from the user's config

Both are run through ``Step.run(context)``, which always returns an Outcome.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, Union

from .models import CommandRecord, ExecutionContext, Outcome, StepResult

logger = logging.getLogger(__name__)

Routine = Callable[[ExecutionContext], StepResult]

_ROUTINES: Dict[str, Routine] = {}


def register_routine(tag: str) -> Callable[[Routine], Routine]:
    """Decorator registering the routine behind ``BuiltIn(tag)``."""

    def decorator(func: Routine) -> Routine:
        if tag in _ROUTINES:
            raise ValueError(f"Routine already registered for tag: {tag}")
        _ROUTINES[tag] = func
        return func

    return decorator


def get_routine(tag: str) -> Routine:
    try:
        return _ROUTINES[tag]
    except KeyError:
        raise KeyError(f"No routine registered for tag: {tag}") from None


@dataclass(frozen=True)
class BuiltIn:
    """Dispatch to the fixed routine registered under ``tag``."""
    tag: str


@dataclass(frozen=True)
class CustomCommands:
    """Run the given shell commands in order, stopping at the first failure."""
    commands: Tuple[str, ...]


StepAction = Union[BuiltIn, CustomCommands]


@dataclass(frozen=True)
class Step:
    """One named unit of work in the pipeline."""
    id: str
    description: str
    action: StepAction

    @property
    def is_custom(self) -> bool:
        return isinstance(self.action, CustomCommands)

    def run(self, context: ExecutionContext) -> Outcome:
        """Attempt the step once and time it."""
        start = time.monotonic()
        if isinstance(self.action, CustomCommands):
            result = run_custom_commands(self.description, self.action.commands, context)
        else:
            result = get_routine(self.action.tag)(context)
        return Outcome.from_result(self.id, self.description, result, time.monotonic() - start)


def execute_commands(
    context: ExecutionContext,
    commands: Iterable[str],
    *,
    capture: bool,
    fail_fast: bool,
) -> Tuple[List[CommandRecord], List[CommandRecord]]:
    """Run commands through the context's executor.

    Returns (all records, failed records). With ``fail_fast`` nothing runs
    after the first failure.
    """
    records: List[CommandRecord] = []
    failed: List[CommandRecord] = []
    for command in commands:
        result = context.executor.execute(command, capture=capture)
        record = CommandRecord(
            command=command,
            success=result.ok,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )
        records.append(record)
        if not record.success:
            failed.append(record)
            if fail_fast:
                break
    return records, failed


def describe_failure(record: CommandRecord) -> str:
    message = f"`{record.command}` exited with {record.exit_code}"
    diagnostic = (record.stderr or "").strip().splitlines()
    if diagnostic:
        message += f": {diagnostic[-1]}"
    return message


def run_custom_commands(
    name: str, commands: Sequence[str], context: ExecutionContext
) -> StepResult:
    """Run a custom step: captured output, fail-fast."""
    logger.info("Starting custom step: %s (%d commands)", name, len(commands))
    records, failed = execute_commands(context, commands, capture=True, fail_fast=True)
    if failed:
        index = len(records)
        reason = f"command {index}/{len(commands)} failed: {describe_failure(failed[0])}"
        not_run = len(commands) - index
        if not_run:
            reason += f" ({not_run} remaining not run)"
        return StepResult.failed(reason, tuple(records))
    return StepResult.succeeded(f"{len(records)} command(s) completed", tuple(records))
