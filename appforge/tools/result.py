"""Tool results.

Every tool handler returns either a ``ToolSuccess`` or a ``ToolDiagnostic``.
Both end up as text the agent reads on its next turn; a diagnostic never
propagates as an exception past the tool boundary.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class ToolSuccess(BaseModel):
    """Successful tool output (plain text or a JSON-serializable value)."""

    kind: Literal["success"] = "success"
    output: Any = None

    @property
    def ok(self) -> bool:
        return True

    def to_agent_text(self) -> str:
        if isinstance(self.output, str):
            return self.output
        return json.dumps(self.output)


class ToolDiagnostic(BaseModel):
    """Failure description returned to the agent instead of raising."""

    kind: Literal["diagnostic"] = "diagnostic"
    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_agent_text(self) -> str:
        return self.message


ToolResult = Annotated[Union[ToolSuccess, ToolDiagnostic], Field(discriminator="kind")]
