"""Shared fixtures: a recording executor and execution contexts over a temp home."""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

import pytest

from mac_updater.config import AppConfig
from mac_updater.local import ExecutionResult
from mac_updater.orchestrator import ExecutionContext, RunMode


class RecordingExecutor:
    """Stands in for CommandExecutor. Nothing is spawned.

    ``exit_codes`` maps a command line to its exit code (default 0),
    ``available`` lists the programs ``which`` finds, and ``hooks`` maps a
    command line to a callable run in place of the command (it may raise).
    """

    def __init__(
        self,
        exit_codes: Optional[Dict[str, int]] = None,
        available: Iterable[str] = (),
        hooks: Optional[Dict[str, Callable[[], None]]] = None,
    ) -> None:
        self.exit_codes = dict(exit_codes or {})
        self.available = set(available)
        self.hooks = dict(hooks or {})
        self.calls: List[Tuple[str, bool]] = []

    @property
    def commands(self) -> List[str]:
        return [command for command, _ in self.calls]

    def execute(self, command: str, *, capture: bool = True) -> ExecutionResult:
        self.calls.append((command, capture))
        if command in self.hooks:
            self.hooks[command]()
        code = self.exit_codes.get(command, 0)
        return ExecutionResult(
            command=command,
            exit_code=code,
            stdout=f"ran {command}",
            stderr="" if code == 0 else f"{command.split()[0]}: boom",
        )

    def which(self, program: str) -> Optional[str]:
        return f"/usr/local/bin/{program}" if program in self.available else None


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def make_context(home):
    def factory(config=None, executor=None, mode=RunMode.QUIET):
        return ExecutionContext(
            mode=mode,
            config=config or AppConfig(),
            executor=executor or RecordingExecutor(),
            home=home,
        )

    return factory
