"""Sandbox execution -- providers, handles and the tools bound to them."""

from .errors import CommandFailedError, SandboxUnavailableError
from .output import clean_output, decode_text
from .sandbox import SandboxHandle, SandboxProvider, get_sandbox_provider
from .sandbox_tools import sandbox_tools
from .tools.routing import RESERVED_PREFIXES, RoutingConflictError, check_routing_conflicts
from .types import CommandResult, E2BSandboxConfig, LocalSandboxConfig, SandboxConfig

__all__ = [
    "sandbox_tools",
    # Providers
    "SandboxHandle",
    "SandboxProvider",
    "get_sandbox_provider",
    # Errors
    "SandboxUnavailableError",
    "CommandFailedError",
    "RoutingConflictError",
    "RESERVED_PREFIXES",
    "check_routing_conflicts",
    # Types
    "CommandResult",
    "E2BSandboxConfig",
    "LocalSandboxConfig",
    "SandboxConfig",
    # Output
    "clean_output",
    "decode_text",
]
