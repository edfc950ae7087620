from .result import ToolDiagnostic, ToolResult, ToolSuccess
from .tool import Tool, ToolHandler, ToolKind, ToolSet

__all__ = [
    "Tool",
    "ToolHandler",
    "ToolKind",
    "ToolSet",
    "ToolSuccess",
    "ToolDiagnostic",
    "ToolResult",
]
