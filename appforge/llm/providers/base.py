"""Provider interface, response model and provider registry."""

import importlib
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

_PROVIDER_REGISTRY: dict[str, type["LLMProvider"]] = {}

# Built-in providers, imported on first use so their SDKs stay optional at import time
_BUILTIN_MODULES = {
    "openai": "appforge.llm.providers.openai",
    "anthropic": "appforge.llm.providers.anthropic",
}


def register_provider(name: str):
    """Class decorator adding a provider to the registry under ``name``."""

    def decorator(cls: type["LLMProvider"]) -> type["LLMProvider"]:
        _PROVIDER_REGISTRY[name.lower()] = cls
        return cls

    return decorator


class RequestedCall(BaseModel):
    """A tool call the model asked for in one response."""

    call_id: str
    name: str
    arguments: str = "{}"


class LLMResponse(BaseModel):
    """What one model call produced.

    ``tool_calls`` items are stored as
    ``{"call_id", "type": "function", "function": {"name", "arguments"}}``
    with ``arguments`` as a JSON string, which is the form checkpoints keep.
    """

    content: str | None = None
    usage: dict[str, Any] | None = Field(default_factory=dict)
    tool_calls: list[dict[str, Any]] | None = Field(default_factory=list)
    model: str | None = None
    stop_reason: str | None = None

    def requested_calls(self) -> list[RequestedCall]:
        """Tool calls with a name, in the order the model listed them."""
        calls = []
        for raw in self.tool_calls or []:
            fn = raw.get("function") or {}
            if not fn.get("name"):
                continue
            calls.append(
                RequestedCall(
                    call_id=raw.get("call_id") or "",
                    name=fn["name"],
                    arguments=fn.get("arguments") or "{}",
                )
            )
        return calls


class LLMProvider(ABC):
    """A chat model behind one vendor SDK."""

    @abstractmethod
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
        """Send one chat request.

        ``messages`` is conversation history in the normalized form (plain
        ``{role, content}`` turns plus ``function_call`` and
        ``function_call_output`` items). ``tools`` are OpenAI-style function
        definitions as built by ``Tool.to_llm_tool_definition()``.
        """

    def convert_history_messages(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Map normalized history to the vendor's message format. Identity by default."""
        return messages


def get_provider(provider_name: str, **kwargs) -> LLMProvider:
    """Instantiate a registered provider, importing a built-in one if needed.

    Raises:
        ValueError: If no provider is known under ``provider_name``
    """
    key = provider_name.lower()
    if key not in _PROVIDER_REGISTRY and key in _BUILTIN_MODULES:
        importlib.import_module(_BUILTIN_MODULES[key])

    provider_class = _PROVIDER_REGISTRY.get(key)
    if provider_class is None:
        supported = ", ".join(sorted(set(_BUILTIN_MODULES) | set(_PROVIDER_REGISTRY)))
        raise ValueError(f"Unknown LLM provider: {provider_name}. Supported providers: {supported}")
    return provider_class(**kwargs)
