"""Bounded agent loop over a shared run state."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from ..core.context import WorkflowContext
from ..core.state import RunState
from .agent import Agent, AgentResponse

logger = logging.getLogger(__name__)

Router = Callable[["Network"], Agent | None]

DEFAULT_MAX_ITER = 15


class NetworkRun:
    """Outcome of ``Network.run()``."""

    def __init__(
        self,
        state: RunState,
        responses: list[AgentResponse],
        messages: list[dict[str, Any]],
        terminated_by: Literal["router", "max_iter"],
    ):
        self.state = state
        self.responses = responses
        self.messages = messages
        self.terminated_by = terminated_by

    @property
    def iterations(self) -> int:
        return len(self.responses)


class Network:
    """
    Drives agents against one ``RunState`` until the router stops or
    ``max_iter`` agent invocations have happened.

    Before every iteration the router picks the next agent; returning None
    terminates the loop. Iterations run strictly one after another; the tool
    calls inside one iteration may run concurrently.

    Args:
        name: Network name, also the step key prefix of every iteration
        agents: Agents available to the router
        state: Run state shared with the agents' tools and hooks
        router: Routing function; defaults to running the first agent until
            the state has a summary
        max_iter: Maximum number of agent invocations
    """

    def __init__(
        self,
        name: str,
        agents: list[Agent],
        state: RunState,
        router: Router | None = None,
        max_iter: int = DEFAULT_MAX_ITER,
    ):
        if not agents:
            raise ValueError(f"Network '{name}' needs at least one agent")
        if max_iter < 1:
            raise ValueError("max_iter must be at least 1")

        self.name = name
        self.agents = agents
        self.state = state
        self.max_iter = max_iter
        self.iteration = 0

        if router is None:
            from .completion import summary_router

            router = summary_router(agents[0])
        self.router = router

    async def run(
        self,
        ctx: WorkflowContext,
        input: str,
        history: list[dict[str, Any]] | None = None,
    ) -> NetworkRun:
        """Run the loop for one user prompt.

        Args:
            ctx: Workflow context; every LLM and tool call is a durable step
            input: The user prompt
            history: Earlier conversation turns, oldest first

        Returns:
            NetworkRun with the final state, every response and the conversation
        """
        messages: list[dict[str, Any]] = [*(history or []), {"role": "user", "content": input}]
        responses: list[AgentResponse] = []
        terminated_by: Literal["router", "max_iter"] = "max_iter"

        self.iteration = 0
        while self.iteration < self.max_iter:
            agent = self.router(self)
            if agent is None:
                terminated_by = "router"
                break

            logger.debug("Network %s iteration %d: %s", self.name, self.iteration, agent.name)
            response = await agent.infer(
                ctx, messages, f"{self.name}.{self.iteration}", network=self
            )
            messages.extend(response.to_messages())
            responses.append(response)
            self.iteration += 1

        logger.info(
            "Network %s stopped by %s after %d iterations (summary: %s, files: %d)",
            self.name,
            terminated_by,
            self.iteration,
            "yes" if self.state.summary else "no",
            len(self.state.files),
        )
        return NetworkRun(self.state, responses, messages, terminated_by)
