"""LLM providers and durable generation."""

from .generate import llm_generate
from .providers import LLMProvider, LLMResponse, get_provider, register_provider

__all__ = ["llm_generate", "LLMProvider", "LLMResponse", "get_provider", "register_provider"]
