"""User interaction handlers for step confirmation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Confirm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractionRequest:
    """A yes/no question put to the user before a step runs."""

    question: str
    context: Optional[str] = None   # extra line shown under the question
    default: bool = True


@dataclass(frozen=True)
class InteractionResponse:
    """User's answer to an interaction request."""

    confirmed: bool
    cancelled: bool = False  # Ctrl-C / EOF at the prompt

    @classmethod
    def yes(cls) -> "InteractionResponse":
        return cls(confirmed=True)

    @classmethod
    def no(cls) -> "InteractionResponse":
        return cls(confirmed=False)

    @classmethod
    def cancelled_response(cls) -> "InteractionResponse":
        """Create a cancelled response."""
        return cls(confirmed=False, cancelled=True)


class UserInteractionHandler(ABC):
    """Abstract base class for handling user interactions."""

    @abstractmethod
    def ask(self, request: InteractionRequest) -> InteractionResponse:
        """
        Present a request to the user and get their response.

        Args:
            request: The interaction request to present

        Returns:
            The user's response
        """


class CLIInteractionHandler(UserInteractionHandler):
    """Terminal prompts rendered with rich."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        """Ask a yes/no question; Ctrl-C or EOF cancels."""
        if request.context:
            self.console.print(f"   [dim]{request.context}[/dim]")
        try:
            answer = Confirm.ask(
                request.question, console=self.console, default=request.default
            )
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n   [yellow](cancelled)[/yellow]")
            return InteractionResponse.cancelled_response()
        return InteractionResponse(confirmed=bool(answer))


class CallbackInteractionHandler(UserInteractionHandler):
    """
    Interaction handler that uses callbacks.
    Useful for GUI front-ends and tests.
    """

    def __init__(
        self,
        ask_callback: Callable[[InteractionRequest], InteractionResponse],
    ) -> None:
        self.ask_callback = ask_callback

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        return self.ask_callback(request)


class AutoResponseHandler(UserInteractionHandler):
    """
    Answers every confirmation without asking.
    Used when confirmations are requested but nobody is at the terminal.
    """

    def __init__(self, always_confirm: bool = True) -> None:
        self.always_confirm = always_confirm

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        logger.info("Auto-responding to: %s", request.question[:80])
        return InteractionResponse(confirmed=self.always_confirm)
