"""OpenAI chat completions provider."""

import json
import logging
import os
from typing import Any

from openai import AsyncOpenAI

from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)


def _as_function_tool(tool: dict[str, Any]) -> dict[str, Any] | None:
    """Accept nested ``{"function": {...}}`` or flat ``{"name", ...}`` definitions."""
    if "function" in tool:
        return {"type": "function", "function": tool["function"]}
    if tool.get("name"):
        return {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("parameters", {}),
            },
        }
    return None


def _tool_output_text(output: Any) -> str:
    return output if isinstance(output, str) else json.dumps(output)


@register_provider("openai")
class OpenAIProvider(LLMProvider):
    """Chat completions against OpenAI or an OpenAI-compatible endpoint.

    The coding agent runs on ``gpt-4.1``; the title and response agents on
    ``gpt-4o-mini``.
    """

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OpenAI API key not provided. Set OPENAI_API_KEY or pass api_key.")

        self.base_url = base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    def convert_history_messages(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Fold ``function_call`` items into assistant ``tool_calls`` and outputs into tool messages.

        A run of calls attaches to the assistant text right before it when
        that message has no calls yet, otherwise it opens a new assistant
        message with ``content=None``.
        """
        converted: list[dict[str, Any]] = []
        pending: dict[str, Any] | None = None

        for msg in messages:
            kind = msg.get("type")
            if kind == "function_call":
                if pending is None:
                    last = converted[-1] if converted else None
                    if last is not None and last.get("role") == "assistant" and "tool_calls" not in last:
                        pending = last
                        pending["tool_calls"] = []
                    else:
                        pending = {"role": "assistant", "content": None, "tool_calls": []}
                        converted.append(pending)
                pending["tool_calls"].append(
                    {
                        "id": msg.get("call_id", ""),
                        "type": "function",
                        "function": {"name": msg.get("name", ""), "arguments": msg.get("arguments", "{}")},
                    }
                )
                continue

            pending = None
            if kind == "function_call_output":
                converted.append(
                    {
                        "role": "tool",
                        "tool_call_id": msg.get("call_id", ""),
                        "content": _tool_output_text(msg.get("output", "")),
                    }
                )
            else:
                converted.append({"role": msg.get("role", "user"), "content": msg.get("content", "")})

        return converted

    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        **kwargs,
    ) -> LLMResponse:
        chat = self.convert_history_messages(messages or [])
        if system_prompt:
            chat.insert(0, {"role": "system", "content": system_prompt})

        params: dict[str, Any] = {"model": model, "messages": chat}
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        function_tools = [t for t in map(_as_function_tool, tools or []) if t]
        if function_tools:
            params["tools"] = function_tools
        params.update(kwargs)

        try:
            completion = await self.client.chat.completions.create(**params)
        except Exception as e:
            raise RuntimeError(f"OpenAI Chat Completions API call failed: {e}") from e

        if not completion or not completion.choices or not completion.choices[0].message:
            raise RuntimeError("OpenAI API returned no message")
        choice = completion.choices[0]

        usage = {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}
        if completion.usage:
            usage = {
                "input_tokens": completion.usage.prompt_tokens,
                "output_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens,
            }
        logger.debug("OpenAI %s finished with %s", model, choice.finish_reason)

        return LLMResponse(
            content=choice.message.content or "",
            usage=usage,
            tool_calls=[
                {
                    "call_id": call.id,
                    "type": "function",
                    "function": {"name": call.function.name, "arguments": call.function.arguments},
                }
                for call in choice.message.tool_calls or []
            ],
            model=completion.model or model,
            stop_reason=choice.finish_reason,
        )
