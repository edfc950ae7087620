"""Tests for the E2B sandbox provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from e2b import NotFoundException

from appforge.execution.e2b import E2BSandboxHandle, E2BSandboxProvider
from appforge.execution.errors import CommandFailedError, SandboxUnavailableError
from appforge.execution.types import E2BSandboxConfig


class FakeCommandExit(Exception):
    def __init__(self, exit_code, stdout, stderr, error=None):
        super().__init__(error)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.error = error


def make_sandbox(sandbox_id="sbx-123"):
    sandbox = MagicMock()
    sandbox.sandbox_id = sandbox_id
    sandbox.set_timeout = AsyncMock()
    sandbox.commands.run = AsyncMock()
    sandbox.files.write = AsyncMock()
    sandbox.files.read = AsyncMock()
    sandbox.get_host = MagicMock(return_value="3000-sbx-123.e2b.app")
    return sandbox


class TestE2BSandboxProvider:
    """Tests for E2BSandboxProvider."""

    @pytest.mark.asyncio
    async def test_acquire_creates_from_template_and_sets_timeout(self):
        """acquire() creates the sandbox from the template and applies the timeout."""
        sandbox = make_sandbox()
        config = E2BSandboxConfig(template="tmpl-1", timeout=1800, api_key="key")

        with patch("appforge.execution.e2b.AsyncSandbox") as mock_cls:
            mock_cls.create = AsyncMock(return_value=sandbox)
            sandbox_id = await E2BSandboxProvider(config).acquire()

        assert sandbox_id == "sbx-123"
        mock_cls.create.assert_awaited_once_with(template="tmpl-1", api_key="key")
        sandbox.set_timeout.assert_awaited_once_with(1800)

    @pytest.mark.asyncio
    async def test_resolve_connects_by_id(self):
        """resolve() re-attaches to an existing sandbox."""
        sandbox = make_sandbox()

        with patch("appforge.execution.e2b.AsyncSandbox") as mock_cls:
            mock_cls.connect = AsyncMock(return_value=sandbox)
            handle = await E2BSandboxProvider(E2BSandboxConfig(api_key="key")).resolve("sbx-123")

        mock_cls.connect.assert_awaited_once_with("sbx-123", api_key="key")
        assert handle.id == "sbx-123"

    @pytest.mark.asyncio
    async def test_resolve_missing_sandbox(self):
        """Unknown or expired sandboxes raise SandboxUnavailableError."""
        with patch("appforge.execution.e2b.AsyncSandbox") as mock_cls:
            mock_cls.connect = AsyncMock(side_effect=NotFoundException("gone"))
            with pytest.raises(SandboxUnavailableError) as exc_info:
                await E2BSandboxProvider().resolve("sbx-old")

        assert exc_info.value.sandbox_id == "sbx-old"


class TestE2BSandboxHandle:
    """Tests for E2BSandboxHandle."""

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        """Successful commands return a CommandResult."""
        sandbox = make_sandbox()
        sandbox.commands.run.return_value = SimpleNamespace(exit_code=0, stdout="ok\n", stderr="")
        on_stdout = MagicMock()

        result = await E2BSandboxHandle(sandbox, command_timeout=30).run("ls", on_stdout=on_stdout)

        assert result.exit_code == 0
        assert result.stdout == "ok\n"
        sandbox.commands.run.assert_awaited_once_with(
            "ls", on_stdout=on_stdout, on_stderr=None, timeout=30
        )

    @pytest.mark.asyncio
    async def test_run_maps_command_exit(self):
        """Non-zero exits are raised as CommandFailedError."""
        sandbox = make_sandbox()
        sandbox.commands.run.side_effect = FakeCommandExit(2, "partial", "bad flag", "exit status 2")

        with patch("appforge.execution.e2b.CommandExitException", FakeCommandExit):
            with pytest.raises(CommandFailedError) as exc_info:
                await E2BSandboxHandle(sandbox).run("npm run nope")

        assert exc_info.value.exit_code == 2
        assert exc_info.value.stdout == "partial"
        assert exc_info.value.stderr == "bad flag"
        assert "exit status 2" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_files_and_host(self):
        """File operations and host lookup go to the sandbox."""
        sandbox = make_sandbox()
        sandbox.files.read.return_value = "content"
        handle = E2BSandboxHandle(sandbox)

        await handle.write_file("app/page.tsx", "page")
        assert await handle.read_file("app/page.tsx") == "content"
        sandbox.files.write.assert_awaited_once_with("app/page.tsx", "page")
        assert handle.public_url(3000) == "https://3000-sbx-123.e2b.app"
        sandbox.get_host.assert_called_once_with(3000)
