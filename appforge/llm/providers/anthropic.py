"""Anthropic messages provider."""

import json
import logging
import os
from typing import Any

from anthropic import AsyncAnthropic

from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)

# The messages API requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096


def _tool_input(arguments: Any) -> dict[str, Any]:
    if not isinstance(arguments, str):
        return arguments or {}
    try:
        return json.loads(arguments or "{}")
    except json.JSONDecodeError:
        return {}


def _to_block(msg: dict[str, Any]) -> tuple[str, dict[str, Any] | str]:
    """Role and content block (or plain text) for one normalized message."""
    kind = msg.get("type")
    if kind == "function_call":
        return "assistant", {
            "type": "tool_use",
            "id": msg.get("call_id", ""),
            "name": msg.get("name", ""),
            "input": _tool_input(msg.get("arguments")),
        }
    if kind == "function_call_output":
        output = msg.get("output", "")
        return "user", {
            "type": "tool_result",
            "tool_use_id": msg.get("call_id", ""),
            "content": output if isinstance(output, str) else json.dumps(output),
        }
    role = "assistant" if msg.get("role") == "assistant" else "user"
    return role, msg.get("content", "")


def _tool_schema(tool: dict[str, Any]) -> dict[str, Any] | None:
    fn = tool.get("function", tool)
    if not fn.get("name"):
        return None
    return {
        "name": fn["name"],
        "description": fn.get("description", ""),
        "input_schema": fn.get("parameters") or {"type": "object", "properties": {}},
    }


@register_provider("anthropic")
class AnthropicProvider(LLMProvider):
    """Claude models through the messages API."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("Anthropic API key not provided. Set ANTHROPIC_API_KEY or pass api_key.")
        self.client = AsyncAnthropic(api_key=self.api_key)

    def convert_history_messages(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Build alternating turns: tool calls as ``tool_use`` blocks on the
        assistant side, outputs as ``tool_result`` blocks on the user side.

        Consecutive messages with the same role are merged into one turn.
        A turn holding a single text message keeps it as a plain string.
        """
        turns: list[dict[str, Any]] = []
        for msg in messages:
            role, block = _to_block(msg)
            if not turns or turns[-1]["role"] != role:
                turns.append({"role": role, "content": block if isinstance(block, str) else [block]})
                continue

            content = turns[-1]["content"]
            if isinstance(content, str):
                content = [{"type": "text", "text": content}] if content else []
            content.append({"type": "text", "text": block} if isinstance(block, str) else block)
            turns[-1]["content"] = content
        return turns

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
        params: dict[str, Any] = {
            "model": model,
            "messages": self.convert_history_messages(messages or []),
            "max_tokens": DEFAULT_MAX_TOKENS if max_tokens is None else max_tokens,
        }
        if system_prompt:
            params["system"] = system_prompt
        if temperature is not None:
            params["temperature"] = temperature
        schemas = [s for s in (_tool_schema(t) for t in tools or [] if isinstance(t, dict)) if s]
        if schemas:
            params["tools"] = schemas
        params.update(kwargs)

        try:
            reply = await self.client.messages.create(**params)
        except Exception as e:
            raise RuntimeError(f"Anthropic API call failed: {e}") from e
        if not reply:
            raise RuntimeError("Anthropic API returned no response")

        text = []
        tool_calls = []
        for block in reply.content:
            if block.type == "text":
                text.append(block.text)
            elif block.type == "tool_use":
                arguments = json.dumps(block.input) if isinstance(block.input, dict) else str(block.input)
                tool_calls.append(
                    {
                        "call_id": block.id,
                        "type": "function",
                        "function": {"name": block.name, "arguments": arguments},
                    }
                )

        input_tokens = reply.usage.input_tokens if reply.usage else 0
        output_tokens = reply.usage.output_tokens if reply.usage else 0
        return LLMResponse(
            content="".join(text),
            usage={
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            },
            tool_calls=tool_calls,
            model=getattr(reply, "model", None) or model,
            stop_reason=getattr(reply, "stop_reason", None),
        )
