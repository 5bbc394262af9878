"""Local command execution."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Synthetic exit codes for commands that never started, matching the shell's
# own conventions for "not found" and "not executable".
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
EXIT_SPAWN_FAILED = -1

_EXTRA_PATHS = (
    "/opt/homebrew/bin",
    "/opt/homebrew/sbin",
    "/usr/local/bin",
    "/usr/sbin",
    "/sbin",
)


@dataclass(frozen=True)
class ExecutionResult:
    """Result of executing one command."""

    command: str
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _write_stdout(line: str) -> None:
    sys.stdout.write(line)
    sys.stdout.flush()


class CommandExecutor:
    """
    Runs shell commands on this machine, one at a time.

    ``execute`` never raises for process-level problems: a command that
    cannot be started comes back as an ExecutionResult with a synthetic
    non-zero exit code and the reason in ``stderr``. No timeout is applied;
    tools such as ``brew upgrade`` are allowed to run to completion.
    """

    def __init__(
        self,
        working_dir: Optional[str] = None,
        on_output: Optional[Callable[[str], None]] = None,
        shell: str = "/bin/bash",
    ) -> None:
        """
        Args:
            working_dir: Working directory for commands. Defaults to home directory.
            on_output: Receives each line of streamed output (with newline).
            shell: Shell used to interpret command lines.
        """
        self.working_dir = working_dir or os.path.expanduser("~")
        self.on_output = on_output or _write_stdout
        self.shell = shell

    def execute(self, command: str, *, capture: bool = True) -> ExecutionResult:
        """
        Execute a command line and wait for it to finish.

        Args:
            command: The command line, interpreted by ``self.shell``
            capture: Capture output silently (True) or stream it line by line
                to ``on_output`` while also collecting it (False)

        Returns:
            ExecutionResult with exit code and output
        """
        logger.info("→ %s", command)
        try:
            if capture:
                result = self._run_blocking(command)
            else:
                result = self._run_streaming(command)
        except OSError as exc:
            result = self._spawn_failure(command, exc)

        if result.ok:
            logger.info("Command `%s` exited with 0", command)
        else:
            logger.warning(
                "Command `%s` exited with %s: %s",
                command,
                result.exit_code,
                result.stderr.strip()[:500],
            )
        return result

    def which(self, program: str) -> Optional[str]:
        """Locate an executable using the same PATH commands will see."""
        return shutil.which(program, path=self._get_env().get("PATH"))

    def _run_blocking(self, command: str) -> ExecutionResult:
        """Run command and wait for completion, capturing output."""
        result = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            cwd=self.working_dir,
            env=self._get_env(),
            executable=self.shell,
        )
        return ExecutionResult(
            command=command,
            exit_code=result.returncode,
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
        )

    def _run_streaming(self, command: str) -> ExecutionResult:
        """Run command forwarding each output line as it arrives.

        stderr is merged into stdout so lines keep their original order.
        """
        process = subprocess.Popen(
            command,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            cwd=self.working_dir,
            env=self._get_env(),
            executable=self.shell,
        )
        chunks = []
        assert process.stdout is not None
        try:
            with process.stdout:
                for line in process.stdout:
                    chunks.append(line)
                    self.on_output(line)
        except BaseException:
            process.kill()
            process.wait()
            raise
        exit_code = process.wait()

        output = "".join(chunks).strip()
        return ExecutionResult(
            command=command,
            exit_code=exit_code,
            stdout=output,
            # the tail of merged output is the best failure diagnostic
            stderr="" if exit_code == 0 else "\n".join(output.splitlines()[-5:]),
        )

    @staticmethod
    def _spawn_failure(command: str, exc: OSError) -> ExecutionResult:
        if isinstance(exc, PermissionError) or exc.errno == errno.EACCES:
            exit_code = EXIT_NOT_EXECUTABLE
        elif isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
            exit_code = EXIT_NOT_FOUND
        else:
            exit_code = EXIT_SPAWN_FAILED
        return ExecutionResult(
            command=command,
            exit_code=exit_code,
            stdout="",
            stderr=f"failed to start: {type(exc).__name__}: {exc}",
        )

    def _get_env(self) -> dict:
        """Environment for subprocesses with Homebrew and sbin paths on PATH."""
        env = os.environ.copy()
        current = env.get("PATH", "")
        parts = current.split(os.pathsep) if current else []
        for extra in reversed(_EXTRA_PATHS):
            if extra not in parts:
                parts.insert(0, extra)
        env["PATH"] = os.pathsep.join(parts)
        return env
