"""Terminal tool -- run shell commands inside the run's sandbox."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from ...core.context import WorkflowContext
from ...tools.result import ToolDiagnostic, ToolResult, ToolSuccess
from ...tools.tool import Tool, ToolKind
from ..sandbox import SandboxProvider

logger = logging.getLogger(__name__)


class TerminalInput(BaseModel):
    """Input schema for the terminal tool."""

    command: str = Field(description="The shell command to execute")


def create_terminal_tool(sandbox_id: str, provider: SandboxProvider) -> Tool:
    """Create the terminal tool.

    Output is buffered as it streams so a failing command still reports
    whatever it printed before failing.

    Args:
        sandbox_id: Id of the run's sandbox, re-resolved on every call.
        provider: Provider that owns the sandbox.

    Returns:
        A Tool instance for terminal.
    """

    async def run_command(command: str) -> ToolResult:
        stdout: list[str] = []
        stderr: list[str] = []
        try:
            sandbox = await provider.resolve(sandbox_id)
            result = await sandbox.run(command, on_stdout=stdout.append, on_stderr=stderr.append)
            return ToolSuccess(output=result.stdout)
        except Exception as e:
            message = f"Command failed: {e} \nstdout: {''.join(stdout)}\nstderr: {''.join(stderr)}"
            logger.warning("Terminal command %r failed in sandbox %s: %s", command, sandbox_id, e)
            return ToolDiagnostic(message=message)

    async def handler(ctx: WorkflowContext, input: TerminalInput, step_key: str) -> ToolResult:
        return await ctx.step.run(step_key, run_command, input.command)

    return Tool(
        kind=ToolKind.TERMINAL,
        description="Use the terminal to run commands",
        input_schema=TerminalInput,
        handler=handler,
    )
