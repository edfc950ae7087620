"""Abstract interface for sandboxes.

A sandbox is an ephemeral, timeout-bounded environment addressed by an opaque
id. Providers create sandboxes and re-attach to them by id; handles run
commands and read and write files. Implementations include E2B and Local.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Literal

from .types import CommandResult, SandboxConfig

OutputCallback = Callable[[str], None]


class SandboxHandle(ABC):
    """A live sandbox, obtained from ``SandboxProvider.resolve()``.

    None of the operations retry on their own; retry belongs to the enclosing
    step.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Opaque sandbox id."""
        ...

    @abstractmethod
    async def run(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """Run a shell command, streaming output chunks to the callbacks.

        Raises:
            CommandFailedError: If the command exits with a non-zero status.
            SandboxUnavailableError: If the sandbox has expired.
        """
        ...

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Write content to a file, creating parent directories as needed."""
        ...

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a file's contents as UTF-8 text."""
        ...

    @abstractmethod
    def public_host(self, port: int) -> str:
        """Host name under which ``port`` inside the sandbox is reachable."""
        ...

    def public_url(self, port: int) -> str:
        return f"https://{self.public_host(port)}"


class SandboxProvider(ABC):
    """Creates sandboxes and re-attaches to existing ones by id."""

    @property
    @abstractmethod
    def type(self) -> Literal["e2b", "local"]:
        """Provider type discriminator."""
        ...

    @abstractmethod
    async def acquire(self) -> str:
        """Create a fresh sandbox from the configured template and return its id.

        The sandbox timeout is applied before the id is returned.
        """
        ...

    @abstractmethod
    async def resolve(self, sandbox_id: str) -> SandboxHandle:
        """Re-attach to an existing sandbox.

        Raises:
            SandboxUnavailableError: If the sandbox is unknown or has expired.
        """
        ...


def get_sandbox_provider(config: SandboxConfig | None = None) -> SandboxProvider:
    """Create the sandbox provider selected by ``config.env``."""
    config = config or SandboxConfig()

    if config.env == "local":
        from .local import LocalSandboxProvider

        return LocalSandboxProvider(config.local)

    if config.env == "e2b":
        from .e2b import E2BSandboxProvider

        return E2BSandboxProvider(config.e2b)

    raise ValueError(f"Unknown sandbox env: {config.env}")
