"""Tests for user interaction module."""

import io

import pytest
from rich.console import Console

from mac_updater.interaction import (
    AutoResponseHandler,
    CallbackInteractionHandler,
    CLIInteractionHandler,
    InteractionRequest,
    InteractionResponse,
    UserInteractionHandler,
)


class TestInteractionResponse:
    """Tests for InteractionResponse dataclass."""

    def test_yes_no(self):
        assert InteractionResponse.yes().confirmed
        assert not InteractionResponse.no().confirmed
        assert not InteractionResponse.no().cancelled

    def test_cancelled_response(self):
        """Test creating a cancelled response."""
        response = InteractionResponse.cancelled_response()

        assert response.cancelled is True
        assert response.confirmed is False


class TestAutoResponseHandler:
    """Tests for AutoResponseHandler."""

    def test_auto_confirm_yes(self):
        handler = AutoResponseHandler(always_confirm=True)
        response = handler.ask(InteractionRequest(question="Run 'Update Homebrew'?"))

        assert response.confirmed is True
        assert response.cancelled is False

    def test_auto_confirm_no(self):
        handler = AutoResponseHandler(always_confirm=False)
        response = handler.ask(InteractionRequest(question="Run 'Update Homebrew'?"))

        assert response.confirmed is False


class TestCallbackInteractionHandler:
    def test_delegates_to_callback(self):
        asked = []
        handler = CallbackInteractionHandler(
            ask_callback=lambda request: asked.append(request) or InteractionResponse.no(),
        )

        request = InteractionRequest(question="Run 'Flush DNS Cache'?")
        assert handler.ask(request) == InteractionResponse.no()
        assert asked == [request]


class TestCLIInteractionHandler:
    def _handler(self):
        return CLIInteractionHandler(console=Console(file=io.StringIO(), force_terminal=False))

    @pytest.mark.parametrize("answer, expected", [("y\n", True), ("n\n", False), ("\n", True)])
    def test_answers(self, monkeypatch, answer, expected):
        monkeypatch.setattr("sys.stdin", io.StringIO(answer))
        response = self._handler().ask(InteractionRequest(question="Run it?"))
        assert response.confirmed is expected
        assert not response.cancelled

    def test_eof_cancels(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        response = self._handler().ask(InteractionRequest(question="Run it?"))
        assert response.cancelled
        assert not response.confirmed

    def test_keyboard_interrupt_cancels(self, monkeypatch):
        def interrupted(*args, **kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr("mac_updater.interaction.handler.Confirm.ask", interrupted)
        response = self._handler().ask(InteractionRequest(question="Run it?"))
        assert response == InteractionResponse.cancelled_response()


class TestUserInteractionHandler:
    def test_ask_is_the_only_required_method(self):
        class Minimal(UserInteractionHandler):
            def ask(self, request):
                return InteractionResponse.yes()

        handler = Minimal()
        assert handler.ask(InteractionRequest(question="Run it?")).confirmed
        assert not hasattr(handler, "notify")

    def test_callback_handler_takes_only_ask_callback(self):
        with pytest.raises(TypeError):
            CallbackInteractionHandler(
                ask_callback=lambda request: InteractionResponse.yes(),
                notify_callback=lambda message, level: None,
            )
