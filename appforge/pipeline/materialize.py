"""Turn the final run state into the persisted outcome of a run."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from ..agents.agent import Agent, AgentResponse
from ..core.context import WorkflowContext
from ..core.state import RunState
from ..execution.sandbox import SandboxProvider
from ..persistence.models import Fragment, Message, MessageRole, MessageType, NewMessage
from ..persistence.store import MessageStore

logger = logging.getLogger(__name__)

# Port the sandbox's development server listens on
PREVIEW_PORT = 3000

DEFAULT_FRAGMENT_TITLE = "Generated Code"
DEFAULT_RESPONSE = "Here's what I built for you."
ERROR_MESSAGE = "Something went wrong. Please try again."


class RunResult(BaseModel):
    """Return value of a run: preview URL, file snapshot and summary."""

    url: str
    files: dict[str, str] = Field(default_factory=dict)
    summary: str = ""


def response_text(response: AgentResponse | None, default: str) -> str:
    """Text of the first output item, or ``default`` if it is not usable text."""
    if response is None or not response.output or response.output[0].type != "text":
        return default
    return response.output[0].text()


def build_outcome_message(
    project_id: str,
    state: RunState,
    sandbox_url: str,
    title: str,
    response: str,
    idempotency_key: str | None = None,
) -> NewMessage:
    """The single message recording a run.

    A run without files is an ERROR whether or not it produced a summary.
    """
    if not state.has_files:
        return NewMessage(
            project_id=project_id,
            content=ERROR_MESSAGE,
            role=MessageRole.ASSISTANT,
            type=MessageType.ERROR,
            idempotency_key=idempotency_key,
        )

    return NewMessage(
        project_id=project_id,
        content=response,
        role=MessageRole.ASSISTANT,
        type=MessageType.RESULT,
        fragment=Fragment(sandbox_url=sandbox_url, title=title, files=dict(state.files)),
        idempotency_key=idempotency_key,
    )


async def materialize_result(
    ctx: WorkflowContext,
    state: RunState,
    sandbox_id: str,
    project_id: str,
    sandbox_provider: SandboxProvider,
    store: MessageStore,
    title_agent: Agent,
    response_agent: Agent,
) -> RunResult:
    """Persist exactly one outcome message for the run and return its result.

    Steps: ``fragment-title`` and ``response`` (only when the run has a
    summary), ``get-sandbox-url`` and ``save-result``. The saved message
    carries the execution id as idempotency key, so a re-executed save never
    creates a second message.
    """
    title_output = None
    response_output = None
    if state.summary:
        title_output = await title_agent.run(ctx, state.summary, "fragment-title")
        response_output = await response_agent.run(ctx, state.summary, "response")

    async def get_sandbox_url() -> str:
        sandbox = await sandbox_provider.resolve(sandbox_id)
        return sandbox.public_url(PREVIEW_PORT)

    sandbox_url = await ctx.step.run("get-sandbox-url", get_sandbox_url)

    message = build_outcome_message(
        project_id,
        state,
        sandbox_url,
        title=response_text(title_output, DEFAULT_FRAGMENT_TITLE),
        response=response_text(response_output, DEFAULT_RESPONSE),
        idempotency_key=ctx.execution_id,
    )
    saved: Message = await ctx.step.run("save-result", store.create_message, message)
    logger.info(
        "Saved %s message %s for project %s (%d files)",
        saved.type.value,
        saved.id,
        project_id,
        len(state.files),
    )

    return RunResult(url=sandbox_url, files=dict(state.files), summary=state.summary)
