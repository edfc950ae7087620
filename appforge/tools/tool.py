"""Tool definitions and the typed dispatch table used by agents."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from ..core.context import WorkflowContext
from .result import ToolDiagnostic, ToolResult

logger = logging.getLogger(__name__)

ToolHandler = Callable[[WorkflowContext, Any, str], Awaitable[ToolResult]]


class ToolKind(str, Enum):
    """The closed set of tools available to the coding agent."""

    TERMINAL = "terminal"
    CREATE_OR_UPDATE_FILES = "createOrUpdateFiles"
    READ_FILES = "readFiles"


class Tool:
    """A tool the LLM can call.

    Args:
        kind: Which tool this is; its value is the name the LLM calls it by
        description: Description for the LLM (what this tool does)
        input_schema: Pydantic model the call arguments are validated against
        handler: ``async handler(ctx, input, step_key) -> ToolResult``
    """

    def __init__(
        self,
        kind: ToolKind,
        description: str,
        input_schema: type[BaseModel],
        handler: ToolHandler,
    ):
        self.kind = kind
        self.description = description
        self.input_schema = input_schema
        self.handler = handler

    @property
    def name(self) -> str:
        return self.kind.value

    def to_llm_tool_definition(self) -> dict[str, Any]:
        """
        Convert tool to LLM function calling format.

        Returns format compatible with OpenAI/Anthropic function calling:
        {
            "type": "function",
            "function": {
                "name": "terminal",
                "description": "...",
                "parameters": {...}
            }
        }
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema.model_json_schema(),
            },
        }

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"


class ToolSet:
    """Handler table keyed by ``ToolKind``.

    ``dispatch()`` looks up the handler by the name the LLM used, validates the
    arguments against the tool's input schema and only then calls the handler.
    Unknown names and invalid arguments come back as diagnostics.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[ToolKind, Tool] = {}
        for t in tools:
            self.add(t)

    def add(self, tool: Tool) -> None:
        if tool.kind in self._tools:
            raise ValueError(f"Duplicate tool: {tool.name}")
        self._tools[tool.kind] = tool

    def get(self, name: str) -> Tool | None:
        try:
            return self._tools.get(ToolKind(name))
        except ValueError:
            return None

    def __iter__(self):
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """LLM tool definitions for every tool in the set."""
        return [t.to_llm_tool_definition() for t in self._tools.values()]

    async def dispatch(
        self,
        ctx: WorkflowContext,
        name: str,
        arguments: str | dict[str, Any] | None,
        step_key: str,
    ) -> ToolResult:
        """Validate the call and run the matching handler.

        Args:
            ctx: Workflow context the handler runs its durable step in
            name: Tool name as requested by the LLM
            arguments: JSON string or already-decoded arguments
            step_key: Unique step key for this call

        Returns:
            The handler's result, or a ToolDiagnostic for unknown tools and
            invalid arguments
        """
        tool = self.get(name)
        if tool is None:
            available = ", ".join(t.name for t in self._tools.values())
            logger.warning("LLM requested unknown tool %s", name)
            return ToolDiagnostic(message=f"Error: unknown tool '{name}'. Available tools: {available}")

        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as e:
                return ToolDiagnostic(message=f"Error: invalid JSON arguments for {name}: {e}")

        try:
            tool_input = tool.input_schema.model_validate(arguments or {})
        except ValidationError as e:
            logger.warning("Invalid arguments for tool %s: %s", name, e)
            return ToolDiagnostic(message=f"Error: invalid arguments for {name}: {e}")

        return await tool.handler(ctx, tool_input, step_key)
