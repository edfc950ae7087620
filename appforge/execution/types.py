"""Shared types for sandbox providers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..utils.config import (
    DEFAULT_SANDBOX_TEMPLATE,
    DEFAULT_SANDBOX_TIMEOUT_SECONDS,
    DEFAULT_WORKSPACES_DIR,
)


class CommandResult(BaseModel):
    """Result of a command execution."""

    exit_code: int = Field(description="Process exit code (0 = success)")
    stdout: str = Field(description="Standard output")
    stderr: str = Field(description="Standard error")
    duration_ms: int = Field(default=0, description="Execution duration in milliseconds")
    truncated: bool = Field(
        default=False, description="Whether output was truncated due to size limits"
    )


class E2BSandboxConfig(BaseModel):
    """Configuration for E2B sandboxes."""

    template: str = Field(
        default=DEFAULT_SANDBOX_TEMPLATE, description="E2B template the sandbox is created from"
    )
    timeout: int = Field(
        default=DEFAULT_SANDBOX_TIMEOUT_SECONDS,
        description="Sandbox lifetime in seconds, set right after creation",
    )
    api_key: str | None = Field(
        default=None, description="E2B API key (defaults to E2B_API_KEY env var)"
    )
    command_timeout: int | None = Field(
        default=None, description="Per-command timeout in seconds (E2B default when omitted)"
    )


class LocalSandboxConfig(BaseModel):
    """Configuration for local sandboxes (a workspace directory per sandbox)."""

    workspaces_dir: str = Field(
        default=DEFAULT_WORKSPACES_DIR, description="Directory holding one workspace per sandbox"
    )
    template_dir: str | None = Field(
        default=None, description="Directory copied into every new workspace"
    )
    timeout: int = Field(
        default=DEFAULT_SANDBOX_TIMEOUT_SECONDS, description="Sandbox lifetime in seconds"
    )
    command_timeout: int = Field(default=300, description="Per-command timeout in seconds")
    max_output_chars: int = Field(
        default=100_000, description="Maximum output characters before truncation"
    )


class SandboxConfig(BaseModel):
    """Selects and configures the sandbox provider."""

    env: Literal["e2b", "local"] = Field(default="e2b", description="Sandbox provider type")
    e2b: E2BSandboxConfig | None = None
    local: LocalSandboxConfig | None = None
