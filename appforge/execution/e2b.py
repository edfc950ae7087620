"""E2B sandbox provider.

Sandboxes are created from a pre-built template image and re-attached to by
id for every operation of a run.
"""

from __future__ import annotations

import logging
import time
from typing import Literal

from e2b import CommandExitException, NotFoundException
from e2b_code_interpreter import AsyncSandbox

from .errors import CommandFailedError, SandboxUnavailableError
from .sandbox import OutputCallback, SandboxHandle, SandboxProvider
from .types import CommandResult, E2BSandboxConfig

logger = logging.getLogger(__name__)


class E2BSandboxHandle(SandboxHandle):
    """Handle over a connected ``AsyncSandbox``."""

    def __init__(self, sandbox: AsyncSandbox, command_timeout: int | None = None):
        self._sandbox = sandbox
        self._command_timeout = command_timeout

    @property
    def id(self) -> str:
        return self._sandbox.sandbox_id

    async def run(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        kwargs = {}
        effective_timeout = timeout if timeout is not None else self._command_timeout
        if effective_timeout is not None:
            kwargs["timeout"] = effective_timeout

        start = time.monotonic()
        try:
            result = await self._sandbox.commands.run(
                command,
                on_stdout=on_stdout,
                on_stderr=on_stderr,
                **kwargs,
            )
        except CommandExitException as e:
            raise CommandFailedError(
                exit_code=e.exit_code,
                stdout=e.stdout,
                stderr=e.stderr,
                error=e.error,
            ) from e
        except NotFoundException as e:
            raise SandboxUnavailableError(self.id, str(e)) from e

        return CommandResult(
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    async def write_file(self, path: str, content: str) -> None:
        await self._sandbox.files.write(path, content)

    async def read_file(self, path: str) -> str:
        return await self._sandbox.files.read(path)

    def public_host(self, port: int) -> str:
        return self._sandbox.get_host(port)


class E2BSandboxProvider(SandboxProvider):
    """Provider backed by the E2B code-interpreter SDK."""

    @property
    def type(self) -> Literal["e2b"]:
        return "e2b"

    def __init__(self, config: E2BSandboxConfig | None = None):
        self._config = config or E2BSandboxConfig()

    async def acquire(self) -> str:
        sandbox = await AsyncSandbox.create(
            template=self._config.template,
            api_key=self._config.api_key,
        )
        await sandbox.set_timeout(self._config.timeout)
        logger.info(
            "Created sandbox %s from template %s (timeout %ss)",
            sandbox.sandbox_id,
            self._config.template,
            self._config.timeout,
        )
        return sandbox.sandbox_id

    async def resolve(self, sandbox_id: str) -> SandboxHandle:
        try:
            sandbox = await AsyncSandbox.connect(sandbox_id, api_key=self._config.api_key)
        except NotFoundException as e:
            raise SandboxUnavailableError(sandbox_id, "not found or expired") from e
        logger.debug("Connected to sandbox %s", sandbox_id)
        return E2BSandboxHandle(sandbox, command_timeout=self._config.command_timeout)
