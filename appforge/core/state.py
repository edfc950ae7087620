"""Run state shared between the agent loop and its tools."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pydantic import BaseModel, ConfigDict, PrivateAttr


class WorkflowState(BaseModel):
    """Base class for workflow state.

    Workflow state is a Pydantic model owned by a single execution. Assignments
    are validated so a tool can never store a value of the wrong shape.
    """

    model_config = ConfigDict(validate_assignment=True)


class RunState(WorkflowState):
    """Mutable state of one agent run.

    ``summary`` stays empty until the agent emits the completion marker; once
    set it is the terminal signal for the network loop. ``files`` mirrors the
    sandbox contents for every path the agent wrote during this run and only
    ever grows.

    Example:
        state = RunState()
        async with state.edit_files() as files:
            files["app/page.tsx"] = "export default function Page() {}"
    """

    summary: str = ""
    files: dict[str, str] = {}

    _files_lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)

    @property
    def has_files(self) -> bool:
        return len(self.files) > 0

    @asynccontextmanager
    async def edit_files(self) -> AsyncIterator[dict[str, str]]:
        """Serialized read-modify-write of ``files``.

        Yields a copy of the current file map while holding the state's lock;
        the copy becomes the new ``files`` value when the block exits, even if it
        exits with an exception (so writes that already reached the sandbox stay
        recorded). Concurrent tool calls therefore never interleave their updates.
        """
        async with self._files_lock:
            draft = dict(self.files)
            try:
                yield draft
            finally:
                self.files = draft
