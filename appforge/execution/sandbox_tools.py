"""Build the tool set an agent uses against one run's sandbox."""

from __future__ import annotations

from ..core.state import RunState
from ..tools.tool import ToolSet
from .sandbox import SandboxProvider
from .tools.files import create_read_files_tool, create_write_files_tool
from .tools.terminal import create_terminal_tool


def sandbox_tools(sandbox_id: str, provider: SandboxProvider, state: RunState) -> ToolSet:
    """Create the terminal, createOrUpdateFiles and readFiles tools for a run.

    Every tool re-resolves the sandbox by id on each call. File writes are
    recorded in ``state.files``.

    Example:
        tools = sandbox_tools(sandbox_id, provider, state)
        agent = Agent(name="code-agent", tools=tools, ...)
    """
    return ToolSet(
        [
            create_terminal_tool(sandbox_id, provider),
            create_write_files_tool(sandbox_id, provider, state),
            create_read_files_tool(sandbox_id, provider),
        ]
    )
