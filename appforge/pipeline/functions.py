"""The code-agent workflow: one run per ``code-agent/run`` event."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..agents.agent import Agent
from ..agents.completion import completion_hook, summary_router
from ..agents.conversation import prime_conversation
from ..agents.network import Network
from ..core.context import WorkflowContext
from ..core.state import RunState
from ..core.workflow import _execution_context, workflow
from ..execution.sandbox import SandboxProvider
from ..execution.sandbox_tools import sandbox_tools
from ..llm.providers import LLMProvider
from ..persistence.store import MessageStore
from ..utils.config import AppForgeConfig
from .materialize import RunResult, materialize_result
from .prompts import FRAGMENT_TITLE_PROMPT, PROMPT, RESPONSE_PROMPT

logger = logging.getLogger(__name__)

CODE_AGENT_EVENT = "code-agent/run"
NETWORK_NAME = "coding-agent-network"


class RunRequested(BaseModel):
    """Event data starting a run."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(alias="projectId", min_length=1)
    value: str = Field(min_length=1)


def get_run_services() -> dict[str, Any]:
    """Services the worker placed in the execution context.

    Keys: ``sandbox_provider``, ``message_store``, ``config`` and optionally
    ``llm_provider`` (an ``LLMProvider`` overriding ``config.provider``).
    """
    exec_context = _execution_context.get()
    if not exec_context:
        raise RuntimeError("Run services are only available inside a workflow execution")

    missing = [
        key for key in ("sandbox_provider", "message_store", "config") if key not in exec_context
    ]
    if missing:
        raise RuntimeError(f"Execution context is missing services: {', '.join(missing)}")
    return exec_context


@workflow(
    id="code-agent",
    description="Build or change a Next.js app in a sandbox from one user prompt",
    trigger_on_event=CODE_AGENT_EVENT,
)
async def code_agent_function(ctx: WorkflowContext, payload: RunRequested) -> RunResult:
    services = get_run_services()
    sandbox_provider: SandboxProvider = services["sandbox_provider"]
    store: MessageStore = services["message_store"]
    config: AppForgeConfig = services["config"]
    llm: LLMProvider | str = services.get("llm_provider") or config.provider

    sandbox_id = await ctx.step.run("get-sandbox-id", sandbox_provider.acquire)

    async def load_previous_messages() -> list[dict[str, Any]]:
        return await prime_conversation(store, payload.project_id, config.history_limit)

    previous_messages = await ctx.step.run("get-previous-messages", load_previous_messages)

    state = RunState()
    code_agent = Agent(
        name="code-agent",
        description="An expert coding agent.",
        system_prompt=PROMPT,
        model=config.model,
        provider=llm,
        tools=sandbox_tools(sandbox_id, sandbox_provider, state),
        temperature=config.temperature,
        on_response=completion_hook,
    )
    network = Network(
        name=NETWORK_NAME,
        agents=[code_agent],
        state=state,
        router=summary_router(code_agent),
        max_iter=config.max_iterations,
    )
    await network.run(ctx, payload.value, history=previous_messages)

    title_agent = Agent(
        name="fragment-title-generator",
        description="A fragment title generator.",
        system_prompt=FRAGMENT_TITLE_PROMPT,
        model=config.auxiliary_model,
        provider=llm,
    )
    response_agent = Agent(
        name="response-generator",
        description="A response generator.",
        system_prompt=RESPONSE_PROMPT,
        model=config.auxiliary_model,
        provider=llm,
    )

    return await materialize_result(
        ctx,
        state,
        sandbox_id,
        payload.project_id,
        sandbox_provider,
        store,
        title_agent,
        response_agent,
    )
