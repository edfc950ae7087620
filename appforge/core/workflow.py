"""Workflow class, decorator, and registry."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any

from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from ..features.tracing import get_tracer
from .context import WorkflowContext

logger = logging.getLogger(__name__)

# Global registry of workflows
_WORKFLOW_REGISTRY: dict[str, Workflow] = {}

# Context variable describing the execution currently running on this task:
# execution_id, workflow_id, attempt and the services the worker provides
# (sandbox_provider, message_store, config).
_execution_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "execution_context", default=None
)


class StepExecutionError(Exception):
    """
    Exception raised when a step fails and the workflow must fail.
    """

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(reason)


class Workflow:
    """A durable function made of checkpointed steps.

    Workflows receive a ``WorkflowContext`` and an optional payload. When
    ``trigger_on_event`` is set, publishing that event starts one execution per
    event (see ``appforge.features.events``).
    """

    def __init__(
        self,
        id: str,
        func: Callable,
        description: str | None = None,
        trigger_on_event: str | None = None,
        payload_schema_class: type[BaseModel] | None = None,
        output_schema: type[BaseModel] | None = None,
    ):
        self.id = id
        self.func = func
        self.description = description
        self.trigger_on_event = trigger_on_event
        self.output_schema = output_schema

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Workflow '{id}' must be an async function")

        params = list(inspect.signature(func, eval_str=True).parameters.values())
        self.has_payload_param = len(params) >= 2
        self._payload_schema_class = payload_schema_class
        if self.has_payload_param and self._payload_schema_class is None:
            annotation = params[1].annotation
            if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
                self._payload_schema_class = annotation

    def _prepare_payload(self, payload: BaseModel | dict[str, Any] | None) -> Any:
        """Validate a payload against the workflow's payload schema, if it has one."""
        if self._payload_schema_class is None:
            return payload
        if isinstance(payload, self._payload_schema_class):
            return payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        return self._payload_schema_class.model_validate(payload or {})

    async def execute(self, ctx: WorkflowContext, payload: Any = None) -> Any:
        """Run the workflow function inside ``ctx``.

        The caller (normally the ``Worker``) owns the execution context variable;
        this method only validates the payload and wraps the call in a span.
        """
        prepared = self._prepare_payload(payload)
        tracer = get_tracer()
        with tracer.start_as_current_span(
            name=f"workflow.{self.id}",
            attributes={
                "workflow.id": self.id,
                "workflow.execution_id": ctx.execution_id,
                "workflow.attempt": ctx.attempt,
            },
        ) as span:
            try:
                if self.has_payload_param:
                    result = await self.func(ctx, prepared)
                else:
                    result = await self.func(ctx)
            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise
            span.set_status(Status(StatusCode.OK))
            return result


def workflow(
    id: str | None = None,
    description: str | None = None,
    trigger_on_event: str | None = None,
):
    """Decorator to register a workflow.

    Usage:
        @workflow(id="code-agent", trigger_on_event="code-agent/run")
        async def code_agent(ctx: WorkflowContext, payload: RunRequested) -> RunResult:
            sandbox_id = await ctx.step.run("get-sandbox-id", acquire_sandbox)
            ...

    Args:
        id: Optional workflow ID (defaults to function name)
        description: Optional human-readable description
        trigger_on_event: Optional event name that starts this workflow
    """

    def decorator(func: Callable) -> Workflow:
        workflow_id = id or func.__name__
        output_schema = None
        return_annotation = inspect.signature(func, eval_str=True).return_annotation
        if inspect.isclass(return_annotation) and issubclass(return_annotation, BaseModel):
            output_schema = return_annotation

        wf = Workflow(
            id=workflow_id,
            func=func,
            description=description,
            trigger_on_event=trigger_on_event,
            output_schema=output_schema,
        )
        _WORKFLOW_REGISTRY[workflow_id] = wf
        return wf

    return decorator


def get_workflow(workflow_id: str) -> Workflow | None:
    """Get a registered workflow by id."""
    return _WORKFLOW_REGISTRY.get(workflow_id)


def get_workflows_for_event(event_name: str) -> list[Workflow]:
    """Get every registered workflow triggered by ``event_name``."""
    return [wf for wf in _WORKFLOW_REGISTRY.values() if wf.trigger_on_event == event_name]
