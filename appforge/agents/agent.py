"""Agent class: a system prompt, a model and a tool set."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal, Union

from pydantic import BaseModel, Field

from ..core.context import WorkflowContext
from ..llm.generate import llm_generate
from ..llm.providers import LLMProvider, get_provider
from ..tools.tool import ToolSet

if TYPE_CHECKING:
    from .network import Network

logger = logging.getLogger(__name__)


class OutputItem(BaseModel):
    """One item of an agent response.

    ``text`` items carry the assistant's reply; ``tool_call`` items carry the
    tool name, call id and JSON arguments; ``tool_result`` items carry the text
    the tool returned to the agent.
    """

    type: Literal["text", "tool_call", "tool_result"]
    content: str | list[str] | None = None
    name: str | None = None
    call_id: str | None = None
    arguments: str | None = None

    def text(self) -> str:
        if isinstance(self.content, list):
            return " ".join(self.content)
        return self.content or ""


class AgentResponse(BaseModel):
    """Result of one agent inference including the tool calls it triggered."""

    agent_name: str
    output: list[OutputItem] = Field(default_factory=list)
    tool_calls: list[OutputItem] = Field(default_factory=list)
    tool_results: list[OutputItem] = Field(default_factory=list)
    usage: dict[str, Any] | None = None

    def last_text(self) -> str | None:
        """Text of the last ``text`` output item, or None if there is none."""
        for item in reversed(self.output):
            if item.type == "text":
                return item.text()
        return None

    def to_messages(self) -> list[dict[str, Any]]:
        """Normalized conversation messages for this response."""
        messages: list[dict[str, Any]] = []
        text = self.last_text()
        if text:
            messages.append({"role": "assistant", "content": text})
        for call in self.tool_calls:
            messages.append(
                {
                    "type": "function_call",
                    "name": call.name,
                    "call_id": call.call_id,
                    "arguments": call.arguments or "{}",
                }
            )
        for result in self.tool_results:
            messages.append(
                {
                    "type": "function_call_output",
                    "call_id": result.call_id,
                    "output": result.text(),
                }
            )
        if not messages:
            messages.append({"role": "assistant", "content": ""})
        return messages


ResponseHook = Callable[
    [AgentResponse, Union["Network", None]],
    Union[AgentResponse, None, Awaitable[Union[AgentResponse, None]]],
]


class Agent:
    """
    An LLM agent.

    ``infer()`` makes one LLM call and runs every tool call it asks for
    concurrently, each as its own durable step. ``run()`` is a single-shot
    call without tools.

    Args:
        name: Agent name, used in logs
        system_prompt: System prompt sent with every call
        model: Model identifier (e.g., "gpt-4.1")
        provider: Provider name or an ``LLMProvider`` instance
        description: Optional description
        tools: Tools the agent may call
        temperature: Optional sampling temperature
        max_output_tokens: Optional output token limit
        on_response: Optional hook called after each inference with the
            response and the network driving the agent (or None). It may
            return a replacement response.
    """

    def __init__(
        self,
        name: str,
        system_prompt: str,
        model: str,
        provider: str | LLMProvider = "openai",
        description: str | None = None,
        tools: ToolSet | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        on_response: ResponseHook | None = None,
    ):
        self.name = name
        self.system_prompt = system_prompt
        self.model = model
        self.description = description
        self.tools = tools or ToolSet()
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.on_response = on_response

        self._provider: LLMProvider | None = None
        self._provider_name: str | None = None
        if isinstance(provider, LLMProvider):
            self._provider = provider
        else:
            self._provider_name = provider

    @property
    def provider(self) -> LLMProvider:
        """The LLM provider, created on first use."""
        if self._provider is None:
            self._provider = get_provider(self._provider_name)
        return self._provider

    async def _generate(
        self,
        ctx: WorkflowContext,
        messages: list[dict[str, Any]],
        step_key: str,
        with_tools: bool,
    ) -> AgentResponse:
        tool_definitions = self.tools.definitions() if with_tools and len(self.tools) else None
        llm_response = await llm_generate(
            ctx,
            step_key,
            self.provider,
            messages=messages,
            model=self.model,
            tools=tool_definitions,
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
            system_prompt=self.system_prompt,
        )

        response = AgentResponse(agent_name=self.name, usage=llm_response.usage)
        if llm_response.content:
            response.output.append(OutputItem(type="text", content=llm_response.content))
        for call in llm_response.requested_calls():
            item = OutputItem(
                type="tool_call", name=call.name, call_id=call.call_id, arguments=call.arguments
            )
            response.output.append(item)
            response.tool_calls.append(item)
        return response

    async def _execute_tools(
        self, ctx: WorkflowContext, response: AgentResponse, step_key_prefix: str
    ) -> None:
        """Run every requested tool call concurrently and record the results."""
        if not response.tool_calls:
            return

        results = await asyncio.gather(
            *[
                self.tools.dispatch(
                    ctx,
                    call.name,
                    call.arguments,
                    f"{step_key_prefix}.tool.{idx}.{call.name}",
                )
                for idx, call in enumerate(response.tool_calls)
            ]
        )

        for call, result in zip(response.tool_calls, results):
            if not result.ok:
                logger.warning("Tool %s returned a diagnostic: %s", call.name, result.message)
            response.tool_results.append(
                OutputItem(
                    type="tool_result",
                    name=call.name,
                    call_id=call.call_id,
                    content=result.to_agent_text(),
                )
            )

    async def _apply_hook(
        self, response: AgentResponse, network: Network | None
    ) -> AgentResponse:
        if self.on_response is None:
            return response
        hooked = self.on_response(response, network)
        if inspect.isawaitable(hooked):
            hooked = await hooked
        return hooked if hooked is not None else response

    async def infer(
        self,
        ctx: WorkflowContext,
        messages: list[dict[str, Any]],
        step_key_prefix: str,
        network: Network | None = None,
    ) -> AgentResponse:
        """One inference plus the tool calls it requested.

        Step keys: ``<prefix>.llm`` for the LLM call and
        ``<prefix>.tool.<index>.<tool name>`` for each tool call.
        """
        response = await self._generate(ctx, messages, f"{step_key_prefix}.llm", with_tools=True)
        await self._execute_tools(ctx, response, step_key_prefix)
        return await self._apply_hook(response, network)

    async def run(self, ctx: WorkflowContext, input: str, step_key: str) -> AgentResponse:
        """Single-shot call: ``input`` as the only user message, no tools."""
        response = await self._generate(
            ctx, [{"role": "user", "content": input}], step_key, with_tools=False
        )
        return await self._apply_hook(response, None)

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, model={self.model!r})"
