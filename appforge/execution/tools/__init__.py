"""Tools bound to a run's sandbox."""

from .files import (
    CreateOrUpdateFilesInput,
    FileBatch,
    FileEntry,
    ReadFilesInput,
    create_read_files_tool,
    create_write_files_tool,
)
from .routing import RESERVED_PREFIXES, RoutingConflictError, check_routing_conflicts
from .terminal import TerminalInput, create_terminal_tool

__all__ = [
    "create_terminal_tool",
    "create_write_files_tool",
    "create_read_files_tool",
    "TerminalInput",
    "CreateOrUpdateFilesInput",
    "ReadFilesInput",
    "FileEntry",
    "FileBatch",
    "RESERVED_PREFIXES",
    "RoutingConflictError",
    "check_routing_conflicts",
]
