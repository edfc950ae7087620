"""Step execution helper for durable execution within workflows."""

from __future__ import annotations

import asyncio
import contextvars
import json
import logging
from collections.abc import Callable
from typing import Any

from opentelemetry.trace import Status, StatusCode

from ..features.tracing import get_tracer
from ..utils.retry import Backoff, retry_with_backoff
from ..utils.serializer import deserialize, safe_serialize, schema_name_for, serialize
from .checkpoints import CheckpointRecord, compute_input_hash
from .context import WorkflowContext
from .workflow import StepExecutionError

logger = logging.getLogger(__name__)


class Step:
    """Step execution helper - provides durable execution primitives.

    Steps are executed within a workflow context and their outputs are
    checkpointed to avoid re-execution when the workflow is re-entered.
    """

    def __init__(self, ctx: WorkflowContext):
        """Initialize Step with a WorkflowContext.

        Args:
            ctx: The workflow execution context
        """
        self.ctx = ctx

    async def _check_existing_step(self, step_key: str) -> CheckpointRecord | None:
        """Get the checkpoint for ``step_key`` in the current execution, if any."""
        return await self.ctx.checkpoint_store.get(self.ctx.execution_id, step_key)

    def _is_reusable(self, existing: CheckpointRecord, input_hash: str) -> bool:
        """A checkpoint is reused only if it succeeded for the same inputs."""
        return existing.success and existing.input_hash == input_hash

    async def _save_step_output(self, step_key: str, input_hash: str, result: Any) -> None:
        """Save a successful step output.

        Pydantic results are stored as JSON together with their class path so
        they are rebuilt as the same model on replay.

        Raises:
            StepExecutionError: If the result is not JSON serializable
        """
        try:
            if isinstance(result, list) and result and schema_name_for(result):
                outputs = [item.model_dump(mode="json") for item in result]
            else:
                outputs = serialize(result)
        except TypeError as e:
            raise StepExecutionError(f"Step '{step_key}' returned a non-serializable value: {e}")

        await self.ctx.checkpoint_store.put(
            self.ctx.execution_id,
            CheckpointRecord(
                step_key=step_key,
                input_hash=input_hash,
                success=True,
                outputs=outputs,
                output_schema_name=schema_name_for(result),
            ),
        )

    async def _save_step_output_with_error(
        self, step_key: str, input_hash: str, error: Exception
    ) -> None:
        """Record a failed step so the failure is visible when inspecting the execution."""
        await self.ctx.checkpoint_store.put(
            self.ctx.execution_id,
            CheckpointRecord(
                step_key=step_key,
                input_hash=input_hash,
                success=False,
                error={"message": str(error), "type": type(error).__name__},
            ),
        )

    async def run(
        self,
        step_key: str,
        func: Callable,
        *args,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        **kwargs,
    ) -> Any:
        """
        Execute a callable as a durable step with retry support.

        If a successful checkpoint exists for ``step_key`` with the same input hash,
        its output is returned without calling ``func``. Otherwise ``func`` runs with
        retries, its output is checkpointed and returned.

        Args:
            step_key: Step key identifier (must be unique per execution)
            func: Callable to execute (sync or async)
            *args: Positional arguments to pass to function
            max_retries: Maximum number of retries on failure (default: 2)
            base_delay: Base delay in seconds for exponential backoff (default: 1.0)
            max_delay: Maximum delay in seconds (default: 10.0)
            **kwargs: Keyword arguments to pass to function

        Returns:
            Result of function execution

        Raises:
            StepExecutionError: If function fails after all retries
        """
        input_hash = compute_input_hash(args, kwargs)

        existing = await self._check_existing_step(step_key)
        if existing is not None:
            if self._is_reusable(existing, input_hash):
                logger.debug("Step %s replayed from checkpoint", step_key)
                return deserialize(existing.outputs, existing.output_schema_name)
            logger.info(
                "Step %s re-executing (previous attempt %s)",
                step_key,
                "failed" if not existing.success else "had different inputs",
            )

        func_name = func.__name__ if hasattr(func, "__name__") else str(func)
        tracer = get_tracer()
        with tracer.start_as_current_span(
            name=f"step.{step_key}",
            attributes={
                "step.key": step_key,
                "step.function": func_name,
                "step.execution_id": self.ctx.execution_id,
                "step.max_retries": max_retries,
            },
        ) as step_span:
            step_span.set_attribute(
                "step.input",
                json.dumps(
                    {
                        "args": [safe_serialize(arg) for arg in args],
                        "kwargs": {k: safe_serialize(v) for k, v in kwargs.items()},
                    },
                    default=str,
                ),
            )

            async def _execute_func() -> Any:
                if asyncio.iscoroutinefunction(func):
                    return await func(*args, **kwargs)
                # Run sync functions in an executor, carrying ContextVar values along
                func_ctx = contextvars.copy_context()
                loop = asyncio.get_running_loop()
                return await loop.run_in_executor(None, lambda: func_ctx.run(func, *args, **kwargs))

            try:
                result = await retry_with_backoff(
                    _execute_func,
                    Backoff(retries=max_retries, base_delay=base_delay, max_delay=max_delay),
                    label=f"step {step_key}",
                )
            except Exception as e:
                step_span.set_status(Status(StatusCode.ERROR, str(e)))
                step_span.record_exception(e)
                await self._save_step_output_with_error(step_key, input_hash, e)
                logger.error("Step %s failed: %s", step_key, e)
                raise StepExecutionError(f"Step '{step_key}' failed: {e}") from e

            await self._save_step_output(step_key, input_hash, result)
            step_span.set_status(Status(StatusCode.OK))
            step_span.set_attribute("step.status", "completed")
            return result
