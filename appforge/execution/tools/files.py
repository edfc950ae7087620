"""File tools -- create/update and read files inside the run's sandbox."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, Field

from ...core.context import WorkflowContext
from ...core.state import RunState
from ...tools.result import ToolDiagnostic, ToolResult, ToolSuccess
from ...tools.tool import Tool, ToolKind
from ..sandbox import SandboxProvider
from .routing import RoutingConflictError, check_routing_conflicts

logger = logging.getLogger(__name__)


class FileEntry(BaseModel):
    path: str = Field(description="File path relative to the project root")
    content: str = Field(description="Full content of the file")


class CreateOrUpdateFilesInput(BaseModel):
    """Input schema for the createOrUpdateFiles tool."""

    files: list[FileEntry] = Field(description="Files to create or overwrite")


class ReadFilesInput(BaseModel):
    """Input schema for the readFiles tool."""

    files: list[str] = Field(description="Paths of the files to read")


class FileBatch(BaseModel):
    """Outcome of one write batch.

    ``written`` holds every entry that reached the sandbox, even when a later
    entry of the same batch failed.
    """

    written: dict[str, str] = Field(default_factory=dict)
    error: str | None = None


def create_write_files_tool(
    sandbox_id: str, provider: SandboxProvider, state: RunState
) -> Tool:
    """Create the createOrUpdateFiles tool.

    The whole batch is checked against the reserved routing prefixes before
    anything is written. Accepted batches are written to the sandbox and
    merged into ``state.files`` inside one ``state.edit_files()`` block, so
    concurrent batches are applied one after another.

    Returns:
        A Tool instance for createOrUpdateFiles.
    """

    async def write_batch(entries: list[dict[str, Any]]) -> FileBatch:
        written: dict[str, str] = {}
        try:
            sandbox = await provider.resolve(sandbox_id)
            for entry in entries:
                await sandbox.write_file(entry["path"], entry["content"])
                written[entry["path"]] = entry["content"]
        except Exception as e:
            logger.warning("Writing files to sandbox %s failed: %s", sandbox_id, e)
            return FileBatch(written=written, error=str(e))
        return FileBatch(written=written)

    async def handler(
        ctx: WorkflowContext, input: CreateOrUpdateFilesInput, step_key: str
    ) -> ToolResult:
        try:
            check_routing_conflicts(entry.path for entry in input.files)
        except RoutingConflictError as e:
            logger.warning("Rejected file batch: %s", e.path)
            return ToolDiagnostic(message=f"Error: {e}")

        async with state.edit_files() as files:
            batch: FileBatch = await ctx.step.run(
                step_key, write_batch, [entry.model_dump() for entry in input.files]
            )
            files.update(batch.written)
            updated = dict(files)

        if batch.error is not None:
            return ToolDiagnostic(message=f"Error: {batch.error}")
        return ToolSuccess(output=updated)

    return Tool(
        kind=ToolKind.CREATE_OR_UPDATE_FILES,
        description="Create or update files in the sandbox",
        input_schema=CreateOrUpdateFilesInput,
        handler=handler,
    )


def create_read_files_tool(sandbox_id: str, provider: SandboxProvider) -> Tool:
    """Create the readFiles tool.

    Files are read one after another; the result is a JSON array of
    ``{"path", "content"}`` objects.

    Returns:
        A Tool instance for readFiles.
    """

    async def read_batch(paths: list[str]) -> ToolResult:
        try:
            sandbox = await provider.resolve(sandbox_id)
            contents = []
            for path in paths:
                content = await sandbox.read_file(path)
                contents.append({"path": path, "content": content})
            return ToolSuccess(output=json.dumps(contents))
        except Exception as e:
            logger.warning("Reading files from sandbox %s failed: %s", sandbox_id, e)
            return ToolDiagnostic(message=f"Error: {e}")

    async def handler(ctx: WorkflowContext, input: ReadFilesInput, step_key: str) -> ToolResult:
        return await ctx.step.run(step_key, read_batch, list(input.files))

    return Tool(
        kind=ToolKind.READ_FILES,
        description="Read files from the sandbox",
        input_schema=ReadFilesInput,
        handler=handler,
    )
