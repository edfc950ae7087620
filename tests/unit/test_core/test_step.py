"""Tests for durable step execution."""

from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from appforge.core.workflow import StepExecutionError
from appforge.execution.errors import SandboxUnavailableError


class Greeting(BaseModel):
    text: str


class TestStepRun:
    """Tests for Step.run checkpointing."""

    @pytest.mark.asyncio
    async def test_runs_function_and_checkpoints_output(self, workflow_context, checkpoint_store):
        """A first run calls the function and stores a successful checkpoint."""
        func = AsyncMock(return_value={"answer": 42})
        func.__name__ = "compute"

        result = await workflow_context.step.run("compute", func, 1, flag=True)

        assert result == {"answer": 42}
        func.assert_awaited_once_with(1, flag=True)
        record = await checkpoint_store.get(workflow_context.execution_id, "compute")
        assert record.success is True
        assert record.outputs == {"answer": 42}

    @pytest.mark.asyncio
    async def test_replays_checkpoint_for_same_inputs(self, workflow_context):
        """Re-running a completed step with the same inputs does not call the function."""
        calls = []

        async def acquire(name):
            calls.append(name)
            return f"sandbox-{len(calls)}"

        first = await workflow_context.step.run("get-sandbox-id", acquire, "tmpl")
        second = await workflow_context.step.run("get-sandbox-id", acquire, "tmpl")

        assert first == second == "sandbox-1"
        assert calls == ["tmpl"]

    @pytest.mark.asyncio
    async def test_reexecutes_when_inputs_change(self, workflow_context):
        """A checkpoint recorded for different inputs is not reused."""

        async def echo(value):
            return value

        assert await workflow_context.step.run("echo", echo, "a") == "a"
        assert await workflow_context.step.run("echo", echo, "b") == "b"

    @pytest.mark.asyncio
    async def test_restores_pydantic_models_on_replay(self, workflow_context):
        """Model outputs come back as the same model class."""

        async def greet():
            return Greeting(text="hi")

        await workflow_context.step.run("greet", greet)
        replayed = await workflow_context.step.run("greet", greet)

        assert isinstance(replayed, Greeting)
        assert replayed.text == "hi"

    @pytest.mark.asyncio
    async def test_runs_sync_functions(self, workflow_context):
        """Synchronous callables run in an executor."""

        def add(a, b):
            return a + b

        assert await workflow_context.step.run("add", add, 2, 3) == 5

    @pytest.mark.asyncio
    async def test_retries_before_succeeding(self, workflow_context, fast_retries):
        """Transient failures are retried with backoff."""
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("temporary")
            return "ok"

        assert await workflow_context.step.run("flaky", flaky) == "ok"
        assert len(attempts) == 3
        assert fast_retries.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_raises_and_records_error(
        self, workflow_context, checkpoint_store, fast_retries
    ):
        """Exhausted retries raise StepExecutionError and record a failed checkpoint."""

        async def broken():
            raise RuntimeError("nope")

        with pytest.raises(StepExecutionError, match="Step 'broken' failed: nope") as exc_info:
            await workflow_context.step.run("broken", broken, max_retries=1)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        record = await checkpoint_store.get(workflow_context.execution_id, "broken")
        assert record.success is False
        assert record.error == {"message": "nope", "type": "RuntimeError"}

    @pytest.mark.asyncio
    async def test_expired_sandbox_fails_without_retrying(self, workflow_context, fast_retries):
        """An unavailable sandbox fails the step on the first attempt."""
        calls = AsyncMock(side_effect=SandboxUnavailableError("sbx-1", "expired"))

        async def get_sandbox_url():
            return await calls()

        with pytest.raises(StepExecutionError) as exc_info:
            await workflow_context.step.run("get-sandbox-url", get_sandbox_url)

        assert isinstance(exc_info.value.__cause__, SandboxUnavailableError)
        assert calls.await_count == 1
        fast_retries.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_checkpoint_is_reexecuted(self, workflow_context, fast_retries):
        """A step that failed earlier runs again on re-entry."""
        state = {"fail": True}

        async def sometimes():
            if state["fail"]:
                raise RuntimeError("down")
            return "up"

        with pytest.raises(StepExecutionError):
            await workflow_context.step.run("sometimes", sometimes, max_retries=0)

        state["fail"] = False
        assert await workflow_context.step.run("sometimes", sometimes) == "up"

    @pytest.mark.asyncio
    async def test_non_serializable_result_fails(self, workflow_context):
        """Outputs must be JSON serializable to be checkpointed."""

        async def make_object():
            return object()

        with pytest.raises(StepExecutionError, match="non-serializable"):
            await workflow_context.step.run("object", make_object)
