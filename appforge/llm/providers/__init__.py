"""LLM provider implementations."""

from .base import LLMProvider, LLMResponse, RequestedCall, get_provider, register_provider

__all__ = ["LLMProvider", "LLMResponse", "RequestedCall", "get_provider", "register_provider"]
