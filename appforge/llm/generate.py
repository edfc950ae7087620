"""Durable LLM generation."""

from typing import Any

from ..core.context import WorkflowContext
from ..core.workflow import _execution_context
from .providers import LLMProvider, LLMResponse


async def llm_generate(
    ctx: WorkflowContext,
    step_key: str,
    provider: LLMProvider,
    messages: list[dict[str, Any]],
    model: str,
    tools: list[dict[str, Any]] | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    system_prompt: str | None = None,
) -> LLMResponse:
    """
    Run one LLM call as a durable step.

    Must be executed within a workflow execution context. The response is
    checkpointed under ``step_key``, so a re-entered execution gets the same
    response back without calling the provider again.

    Returns:
        LLMResponse from the provider (or from the checkpoint)
    """
    exec_context = _execution_context.get()
    if not exec_context or not exec_context.get("execution_id"):
        raise ValueError("llm_generate must be executed within a workflow execution context")

    return await ctx.step.run(
        step_key,
        provider.generate,
        messages=messages,
        model=model,
        tools=tools,
        temperature=temperature,
        max_tokens=max_tokens,
        system_prompt=system_prompt,
    )
