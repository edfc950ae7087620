"""Agents, the agent network loop and completion detection."""

from .agent import Agent, AgentResponse, OutputItem
from .completion import (
    TASK_SUMMARY_MARKER,
    completion_hook,
    detect_completion,
    latch_summary,
    summary_router,
)
from .conversation import prime_conversation
from .network import Network, NetworkRun, Router

__all__ = [
    "Agent",
    "AgentResponse",
    "OutputItem",
    "Network",
    "NetworkRun",
    "Router",
    "TASK_SUMMARY_MARKER",
    "detect_completion",
    "latch_summary",
    "completion_hook",
    "summary_router",
    "prime_conversation",
]
