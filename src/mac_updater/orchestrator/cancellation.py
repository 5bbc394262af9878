"""Cancellation requested from outside the run (Ctrl-C, SIGTERM)."""

from __future__ import annotations

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class CancellationToken:
    """A flag the orchestrator checks between steps.

    The first signal only sets the flag so the running step can finish. A
    second signal raises KeyboardInterrupt to stop the step immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._interruptible = False

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.warning("Cancellation requested")
            self._event.set()

    def _signal_handler(self, signum, frame) -> None:
        if self._interruptible:
            self.cancel()
            raise KeyboardInterrupt
        if self.requested:
            logger.warning("Second interrupt (signal %s), stopping current step", signum)
            raise KeyboardInterrupt
        self.cancel()

    @contextmanager
    def interruptible(self) -> Iterator["CancellationToken"]:
        """Let the first signal raise KeyboardInterrupt while the block runs.

        Used around prompts, where there is no running step to wait for.
        """
        previous, self._interruptible = self._interruptible, True
        try:
            yield self
        finally:
            self._interruptible = previous

    @contextmanager
    def install(self) -> Iterator["CancellationToken"]:
        """Route SIGINT/SIGTERM to this token while the block runs.

        Outside the main thread signals cannot be hooked, and the token only
        reacts to explicit ``cancel()`` calls.
        """
        if threading.current_thread() is not threading.main_thread():
            yield self
            return

        previous = {signal.SIGINT: signal.signal(signal.SIGINT, self._signal_handler)}
        if hasattr(signal, "SIGTERM"):
            previous[signal.SIGTERM] = signal.signal(signal.SIGTERM, self._signal_handler)
        try:
            yield self
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)
