"""Completion marker detection and the summary-based router.

The coding agent ends its work by replying with a ``<task_summary>`` block.
Detection is a plain substring check kept in ``detect_completion()`` so the
marker format lives in one place. The first reply containing the marker wins;
later replies never overwrite the summary.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.state import RunState
from .agent import Agent, AgentResponse

if TYPE_CHECKING:
    from .network import Network, Router

logger = logging.getLogger(__name__)

TASK_SUMMARY_MARKER = "<task_summary>"


def detect_completion(text: str | None) -> bool:
    """Whether ``text`` contains the completion marker."""
    return bool(text) and TASK_SUMMARY_MARKER in text


def latch_summary(state: RunState, text: str | None) -> bool:
    """Store ``text`` as the run summary if it is the first completed reply.

    Returns:
        True if the summary was set by this call
    """
    if state.summary or not detect_completion(text):
        return False
    state.summary = text
    logger.info("Completion marker detected, summary latched (%d chars)", len(text))
    return True


def completion_hook(response: AgentResponse, network: Network | None) -> AgentResponse:
    """``on_response`` hook latching the summary from the agent's last reply."""
    text = response.last_text()
    if text and network is not None:
        latch_summary(network.state, text)
    return response


def summary_router(agent: Agent) -> Router:
    """Router that keeps calling ``agent`` until the run has a summary."""

    def route(network: Network) -> Agent | None:
        if network.state.summary:
            return None
        return agent

    return route
