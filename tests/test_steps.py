"""Tests for steps, the routine registry and custom command steps."""

import pytest

from mac_updater.orchestrator import (
    BuiltIn,
    CustomCommands,
    Step,
    StepResult,
    StepStatus,
    register_routine,
)
from mac_updater.orchestrator.steps import get_routine, run_custom_commands

from conftest import RecordingExecutor


class TestRegistry:
    def test_duplicate_tag_is_rejected(self):
        @register_routine("test-registry-unique")
        def first(context):
            return StepResult.succeeded()

        with pytest.raises(ValueError):
            register_routine("test-registry-unique")(first)

    def test_unknown_tag(self):
        with pytest.raises(KeyError):
            get_routine("no-such-routine")


class TestStepRun:
    def test_builtin_dispatches_to_routine(self, make_context):
        seen = []

        @register_routine("test-step-dispatch")
        def routine(context):
            seen.append(context)
            return StepResult.succeeded("did it")

        context = make_context()
        step = Step(id="x", description="Dispatch", action=BuiltIn("test-step-dispatch"))
        outcome = step.run(context)

        assert seen == [context]
        assert outcome.status is StepStatus.SUCCESS
        assert outcome.detail == "did it"
        assert outcome.step_id == "x"
        assert outcome.description == "Dispatch"
        assert outcome.duration >= 0
        assert not step.is_custom

    def test_custom_step_runs_commands_in_order(self, make_context):
        executor = RecordingExecutor()
        step = Step(id="c", description="Mine", action=CustomCommands(("echo a", "echo b")))
        outcome = step.run(make_context(executor=executor))

        assert step.is_custom
        assert outcome.status is StepStatus.SUCCESS
        assert executor.calls == [("echo a", True), ("echo b", True)]
        assert [c.command for c in outcome.commands] == ["echo a", "echo b"]


class TestCustomCommands:
    def test_fail_fast_names_the_failed_command(self, make_context):
        executor = RecordingExecutor(exit_codes={"two": 4})
        result = run_custom_commands("Mine", ["one", "two", "three"], make_context(executor=executor))

        assert result.status is StepStatus.FAILED
        assert executor.commands == ["one", "two"]
        assert "command 2/3 failed" in result.reason
        assert "`two` exited with 4" in result.reason
        assert "1 remaining not run" in result.reason
        assert [c.success for c in result.commands] == [True, False]

    def test_last_command_failing_has_nothing_remaining(self, make_context):
        executor = RecordingExecutor(exit_codes={"two": 1})
        result = run_custom_commands("Mine", ["one", "two"], make_context(executor=executor))
        assert result.status is StepStatus.FAILED
        assert "remaining" not in result.reason

    def test_empty_command_list_succeeds(self, make_context):
        executor = RecordingExecutor()
        result = run_custom_commands("Nothing", [], make_context(executor=executor))
        assert result.status is StepStatus.SUCCESS
        assert executor.calls == []
        assert result.commands == ()
