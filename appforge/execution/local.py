"""Local sandbox provider.

Each sandbox is a workspace directory under ``workspaces_dir``; commands run
as host subprocesses with the workspace as working directory. Sandbox
metadata (creation and expiry time) lives next to the workspace, outside of
it, so the agent never sees it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import signal
import time
import uuid
from typing import Literal

from .errors import CommandFailedError, SandboxUnavailableError
from .output import clean_output, decode_text
from .sandbox import OutputCallback, SandboxHandle, SandboxProvider
from .types import CommandResult, LocalSandboxConfig

logger = logging.getLogger(__name__)

# Exit code reported for commands killed on timeout
TIMEOUT_EXIT_CODE = 137


# Grace period for draining pipes after a timed-out command is killed
DRAIN_TIMEOUT = 5


async def _pump(
    stream: asyncio.StreamReader, callback: OutputCallback | None, chunks: list[str]
) -> None:
    """Read a process stream to EOF into ``chunks``, forwarding each to ``callback``."""
    while True:
        data = await stream.read(4096)
        if not data:
            return
        text = data.decode("utf-8", errors="replace")
        chunks.append(text)
        if callback:
            callback(text)


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    """Kill the command and everything it forked."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def _spawn_local(
    command: str,
    cwd: str,
    timeout: int,
    on_stdout: OutputCallback | None = None,
    on_stderr: OutputCallback | None = None,
) -> tuple[int, str, str]:
    """Execute a shell command via asyncio subprocess, streaming its output.

    The command runs in its own session so a timeout kills its whole process
    group. Output already read is returned even if the pipes never close.

    Returns:
        Tuple of (exit_code, stdout, stderr).
    """
    proc = await asyncio.create_subprocess_exec(
        "sh",
        "-c",
        command,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )

    stdout_chunks: list[str] = []
    stderr_chunks: list[str] = []
    pumps = [
        asyncio.ensure_future(_pump(proc.stdout, on_stdout, stdout_chunks)),
        asyncio.ensure_future(_pump(proc.stderr, on_stderr, stderr_chunks)),
    ]

    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill_group(proc)
        await proc.wait()
        try:
            await asyncio.wait_for(asyncio.gather(*pumps), timeout=DRAIN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Output pipes still open after killing %r", command)
        stderr_chunks.append("\n[Process killed: timeout exceeded]")
        return TIMEOUT_EXIT_CODE, "".join(stdout_chunks), "".join(stderr_chunks)

    await asyncio.gather(*pumps)
    exit_code = proc.returncode if proc.returncode is not None else 1
    return exit_code, "".join(stdout_chunks), "".join(stderr_chunks)


class LocalSandboxHandle(SandboxHandle):
    """Handle over one workspace directory."""

    def __init__(
        self,
        sandbox_id: str,
        workspace: str,
        expires_at: float,
        config: LocalSandboxConfig,
    ):
        self._id = sandbox_id
        self._workspace = workspace
        self._expires_at = expires_at
        self._config = config

    @property
    def id(self) -> str:
        return self._id

    @property
    def workspace(self) -> str:
        return self._workspace

    async def run(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self._assert_alive()
        start = time.monotonic()

        exit_code, stdout, stderr = await _spawn_local(
            command,
            cwd=self._workspace,
            timeout=timeout or self._config.command_timeout,
            on_stdout=on_stdout,
            on_stderr=on_stderr,
        )

        stdout_clean, stdout_truncated = clean_output(stdout, self._config.max_output_chars)
        stderr_clean, _ = clean_output(stderr, self._config.max_output_chars)

        if exit_code != 0:
            raise CommandFailedError(
                exit_code=exit_code,
                stdout=stdout_clean,
                stderr=stderr_clean,
            )

        return CommandResult(
            exit_code=exit_code,
            stdout=stdout_clean,
            stderr=stderr_clean,
            duration_ms=int((time.monotonic() - start) * 1000),
            truncated=stdout_truncated,
        )

    async def write_file(self, path: str, content: str) -> None:
        self._assert_alive()
        resolved = self._resolve_path(path)

        os.makedirs(os.path.dirname(resolved), exist_ok=True)
        with open(resolved, "w", encoding="utf-8") as f:
            f.write(content)

    async def read_file(self, path: str) -> str:
        self._assert_alive()
        resolved = self._resolve_path(path)
        if os.path.islink(resolved):
            raise ValueError(f'Symbolic link detected: "{path}"')

        with open(resolved, "rb") as f:
            return decode_text(f.read(), path)

    def public_host(self, port: int) -> str:
        return f"localhost:{port}"

    def public_url(self, port: int) -> str:
        return f"http://{self.public_host(port)}"

    def _assert_alive(self) -> None:
        if time.time() >= self._expires_at:
            raise SandboxUnavailableError(self._id, "expired")

    def _resolve_path(self, p: str) -> str:
        """Resolve a path relative to the workspace, rejecting traversal outside of it.

        Absolute paths are treated as workspace-relative.
        """
        resolved = os.path.abspath(os.path.join(self._workspace, p.lstrip("/")))
        if resolved != self._workspace and not resolved.startswith(self._workspace + os.sep):
            raise ValueError(
                f'Path traversal detected: "{p}" resolves outside of the sandbox workspace'
            )
        return resolved


class LocalSandboxProvider(SandboxProvider):
    """Provider creating workspace directories on the host.

    Honours the same timeout semantics as remote sandboxes: once a sandbox's
    lifetime has passed, ``resolve()`` and every handle operation raise
    ``SandboxUnavailableError``.
    """

    @property
    def type(self) -> Literal["local"]:
        return "local"

    def __init__(self, config: LocalSandboxConfig | None = None):
        self._config = config or LocalSandboxConfig()
        self._root = os.path.abspath(os.path.expanduser(self._config.workspaces_dir))

    async def acquire(self) -> str:
        sandbox_id = f"local-{uuid.uuid4().hex[:12]}"
        workspace = self._workspace_path(sandbox_id)

        os.makedirs(workspace, exist_ok=False)
        if self._config.template_dir:
            shutil.copytree(self._config.template_dir, workspace, dirs_exist_ok=True)

        now = time.time()
        metadata = {
            "id": sandbox_id,
            "created_at": now,
            "expires_at": now + self._config.timeout,
        }
        with open(self._metadata_path(sandbox_id), "w", encoding="utf-8") as f:
            json.dump(metadata, f)

        logger.info(
            "Created local sandbox %s at %s (timeout %ss)",
            sandbox_id,
            workspace,
            self._config.timeout,
        )
        return sandbox_id

    async def resolve(self, sandbox_id: str) -> SandboxHandle:
        metadata_path = self._metadata_path(sandbox_id)
        workspace = self._workspace_path(sandbox_id)
        if not os.path.isfile(metadata_path) or not os.path.isdir(workspace):
            raise SandboxUnavailableError(sandbox_id, "not found")

        with open(metadata_path, encoding="utf-8") as f:
            metadata = json.load(f)

        expires_at = float(metadata["expires_at"])
        if time.time() >= expires_at:
            raise SandboxUnavailableError(sandbox_id, "expired")

        return LocalSandboxHandle(sandbox_id, workspace, expires_at, self._config)

    def _workspace_path(self, sandbox_id: str) -> str:
        if os.sep in sandbox_id or sandbox_id in ("", ".", ".."):
            raise SandboxUnavailableError(sandbox_id, "invalid sandbox id")
        return os.path.join(self._root, sandbox_id)

    def _metadata_path(self, sandbox_id: str) -> str:
        return self._workspace_path(sandbox_id) + ".json"
