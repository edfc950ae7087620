"""Worker class for executing workflows with checkpointed re-entry."""

from __future__ import annotations

import asyncio
import logging
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..core.checkpoints import CheckpointStore, InMemoryCheckpointStore
from ..core.context import WorkflowContext
from ..core.workflow import Workflow, _execution_context, get_workflow
from ..execution.errors import SandboxUnavailableError
from ..utils.serializer import schema_name_for, serialize

logger = logging.getLogger(__name__)


class ExecutionStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionRecord(BaseModel):
    """State of one execution as seen by callers of the worker."""

    execution_id: str
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.QUEUED
    payload: Any = None
    result: Any = None
    output_schema_name: str | None = None
    error: str | None = None
    attempts: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def done(self) -> bool:
        return self.status in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


def _is_retryable(error: BaseException) -> bool:
    """Whether re-entering the execution can help.

    Expired sandboxes and invalid payloads fail the same way on every attempt.
    """
    current: BaseException | None = error
    while current is not None:
        if isinstance(current, (SandboxUnavailableError, ValidationError)):
            return False
        current = current.__cause__
    return True


class Worker:
    """Runs workflows in-process.

    Each execution runs with ``services`` in the execution context (for the
    code-agent workflow: ``sandbox_provider``, ``message_store``, ``config``).
    A failed execution is re-entered with the same execution id up to
    ``max_attempts`` times; steps that already completed are replayed from
    their checkpoints instead of running again.

    Usage::

        worker = Worker(services={...})
        record = await worker.execute("code-agent", {"projectId": "p1", "value": "..."})

        # or in the background
        record = worker.submit("code-agent", payload)
        record = await worker.wait(record.execution_id)
    """

    def __init__(
        self,
        services: dict[str, Any] | None = None,
        checkpoint_store: CheckpointStore | None = None,
        workflows: list[Workflow] | None = None,
        max_attempts: int = 3,
        max_concurrent_workflows: int = 10,
        retry_delay: float = 1.0,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.services = services or {}
        self.checkpoint_store = checkpoint_store or InMemoryCheckpointStore()
        self.workflows_registry: dict[str, Workflow] = {wf.id: wf for wf in workflows or []}
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

        self._semaphore = asyncio.Semaphore(max_concurrent_workflows)
        self._executions: dict[str, ExecutionRecord] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def get_workflow(self, workflow_id: str) -> Workflow:
        """Look up a workflow in this worker's registry, then the global one.

        Raises:
            ValueError: If the workflow is unknown
        """
        wf = self.workflows_registry.get(workflow_id) or get_workflow(workflow_id)
        if wf is None:
            raise ValueError(f"Workflow {workflow_id} not found in registry")
        return wf

    def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        return self._executions.get(execution_id)

    def _new_record(self, workflow_id: str, payload: Any, execution_id: str | None) -> ExecutionRecord:
        self.get_workflow(workflow_id)
        execution_id = execution_id or str(uuid.uuid4())
        existing = self._executions.get(execution_id)
        if existing is not None and not existing.done:
            raise ValueError(f"Execution {execution_id} is already running")

        record = ExecutionRecord(
            execution_id=execution_id,
            workflow_id=workflow_id,
            payload=payload,
        )
        self._executions[execution_id] = record
        return record

    async def execute(
        self, workflow_id: str, payload: Any = None, execution_id: str | None = None
    ) -> ExecutionRecord:
        """Run a workflow to completion (including re-entries) and return its record.

        Passing the ``execution_id`` of an earlier execution resumes it from
        its checkpoints.
        """
        record = self._new_record(workflow_id, payload, execution_id)
        async with self._semaphore:
            await self._run(record)
        return record

    def submit(
        self, workflow_id: str, payload: Any = None, execution_id: str | None = None
    ) -> ExecutionRecord:
        """Start a workflow in the background and return its (queued) record."""
        record = self._new_record(workflow_id, payload, execution_id)

        async def run_with_semaphore() -> None:
            async with self._semaphore:
                await self._run(record)

        task = asyncio.create_task(run_with_semaphore())
        self._tasks[record.execution_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(record.execution_id, None))
        return record

    async def wait(self, execution_id: str) -> ExecutionRecord:
        """Wait for a submitted execution to finish.

        Raises:
            KeyError: If the execution is unknown
        """
        record = self._executions.get(execution_id)
        if record is None:
            raise KeyError(execution_id)
        task = self._tasks.get(execution_id)
        if task is not None:
            await asyncio.shield(task)
        return record

    async def _run(self, record: ExecutionRecord) -> None:
        wf = self.get_workflow(record.workflow_id)
        record.status = ExecutionStatus.RUNNING

        for attempt in range(self.max_attempts):
            record.attempts = attempt + 1
            ctx = WorkflowContext(
                workflow_id=wf.id,
                execution_id=record.execution_id,
                checkpoint_store=self.checkpoint_store,
                attempt=attempt + 1,
                started_at=record.created_at,
            )
            token = _execution_context.set(ctx.bind(self.services))
            try:
                result = await wf.execute(ctx, record.payload)
            except asyncio.CancelledError:
                logger.info("Execution %s was cancelled", record.execution_id)
                record.status = ExecutionStatus.FAILED
                record.error = "cancelled"
                record.finished_at = datetime.now(timezone.utc)
                raise
            except Exception as error:
                retryable = _is_retryable(error)
                last_attempt = attempt + 1 >= self.max_attempts
                if retryable and not last_attempt:
                    logger.warning(
                        "Execution %s attempt %d failed, re-entering: %s",
                        record.execution_id,
                        attempt + 1,
                        error,
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue

                logger.error(
                    "Execution %s failed after %d attempt(s): %s\n%s",
                    record.execution_id,
                    attempt + 1,
                    error,
                    traceback.format_exc(),
                )
                record.status = ExecutionStatus.FAILED
                record.error = str(error)
                record.finished_at = datetime.now(timezone.utc)
                return
            finally:
                _execution_context.reset(token)

            record.result = serialize(result)
            record.output_schema_name = schema_name_for(result)
            record.status = ExecutionStatus.COMPLETED
            record.finished_at = datetime.now(timezone.utc)
            logger.info("Execution %s completed", record.execution_id)
            return

    async def shutdown(self) -> None:
        """Cancel executions that are still running."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
