"""Shared pytest configuration and fixtures."""

import json
import uuid
from contextlib import contextmanager
from unittest.mock import AsyncMock, patch

import pytest

from appforge.core.checkpoints import InMemoryCheckpointStore
from appforge.core.context import WorkflowContext
from appforge.core.workflow import _execution_context
from appforge.execution.errors import CommandFailedError, SandboxUnavailableError
from appforge.execution.sandbox import SandboxHandle, SandboxProvider
from appforge.execution.types import CommandResult
from appforge.llm.providers.base import LLMProvider, LLMResponse


class FakeSandboxHandle(SandboxHandle):
    """In-memory sandbox handle driven by its provider's scripted commands."""

    def __init__(self, provider: "FakeSandboxProvider", sandbox_id: str):
        self._provider = provider
        self._id = sandbox_id

    @property
    def id(self) -> str:
        return self._id

    @property
    def files(self) -> dict[str, str]:
        return self._provider.sandboxes[self._id]

    async def run(self, command, on_stdout=None, on_stderr=None, timeout=None):
        self._provider.commands.append(command)
        outcome = self._provider.command_results.get(
            command, CommandResult(exit_code=0, stdout=f"ran {command}\n", stderr="")
        )
        stdout = outcome.stdout if hasattr(outcome, "stdout") else ""
        stderr = outcome.stderr if hasattr(outcome, "stderr") else ""
        if stdout and on_stdout:
            on_stdout(stdout)
        if stderr and on_stderr:
            on_stderr(stderr)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def write_file(self, path, content):
        if path in self._provider.failing_paths:
            raise OSError(f"disk error writing {path}")
        self.files[path] = content

    async def read_file(self, path):
        if path not in self.files:
            raise FileNotFoundError(f"No such file: {path}")
        return self.files[path]

    def public_host(self, port):
        return f"{port}-{self._id}.sandbox.test"


class FakeSandboxProvider(SandboxProvider):
    """Sandbox provider keeping every sandbox's files in memory."""

    def __init__(self):
        self.sandboxes: dict[str, dict[str, str]] = {}
        self.expired: set[str] = set()
        self.command_results: dict[str, CommandResult | Exception] = {}
        self.failing_paths: set[str] = set()
        self.commands: list[str] = []
        self.acquire_count = 0

    @property
    def type(self):
        return "local"

    async def acquire(self):
        self.acquire_count += 1
        sandbox_id = f"sbx-{self.acquire_count}"
        self.sandboxes[sandbox_id] = {}
        return sandbox_id

    async def resolve(self, sandbox_id):
        if sandbox_id in self.expired:
            raise SandboxUnavailableError(sandbox_id, "expired")
        if sandbox_id not in self.sandboxes:
            raise SandboxUnavailableError(sandbox_id, "not found")
        return FakeSandboxHandle(self, sandbox_id)

    def fail_command(self, command, exit_code=1, stdout="", stderr="boom"):
        self.command_results[command] = CommandFailedError(
            exit_code=exit_code, stdout=stdout, stderr=stderr
        )


class ScriptedLLMProvider(LLMProvider):
    """LLM provider returning scripted responses.

    ``responder`` (if given) is called with the recorded call and returns the
    response; otherwise queued ``responses`` are returned in order and
    ``default`` once the queue is empty. Exceptions are raised.
    """

    def __init__(self, responses=None, default=None, responder=None):
        self.responses = list(responses or [])
        self.default = default
        self.responder = responder
        self.calls: list[dict] = []

    async def generate(
        self,
        messages,
        model,
        tools=None,
        temperature=None,
        max_tokens=None,
        system_prompt=None,
        **kwargs,
    ):
        call = {
            "messages": json.loads(json.dumps(messages)),
            "model": model,
            "tools": tools,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "system_prompt": system_prompt,
        }
        self.calls.append(call)

        if self.responder is not None:
            item = self.responder(call)
        elif self.responses:
            item = self.responses.pop(0)
        else:
            item = self.default or LLMResponse(content="")

        if isinstance(item, Exception):
            raise item
        return item

    @staticmethod
    def text(content):
        return LLMResponse(content=content, tool_calls=[])

    @staticmethod
    def tool_calls(*calls, content=None):
        """Response requesting ``(name, arguments)`` tool calls."""
        return LLMResponse(
            content=content,
            tool_calls=[
                {
                    "call_id": f"call_{idx}_{name}",
                    "type": "function",
                    "function": {"name": name, "arguments": json.dumps(arguments)},
                }
                for idx, (name, arguments) in enumerate(calls)
            ],
        )


@pytest.fixture
def checkpoint_store():
    """In-memory checkpoint store."""
    return InMemoryCheckpointStore()


@pytest.fixture
def workflow_context(checkpoint_store):
    """Create a WorkflowContext backed by an in-memory checkpoint store."""
    return WorkflowContext(
        workflow_id="test-workflow",
        execution_id=str(uuid.uuid4()),
        checkpoint_store=checkpoint_store,
    )


@pytest.fixture
def in_execution(workflow_context):
    """Context manager setting the execution context variable for ``workflow_context``.

    Enter it inside the test body so the value is visible to the running task.
    """

    @contextmanager
    def _enter(**services):
        token = _execution_context.set(workflow_context.bind(services))
        try:
            yield
        finally:
            _execution_context.reset(token)

    return _enter


@pytest.fixture
def sandbox_provider():
    """Fake in-memory sandbox provider."""
    return FakeSandboxProvider()


@pytest.fixture
def scripted_llm():
    """The ScriptedLLMProvider class, for building scripted providers."""
    return ScriptedLLMProvider


@pytest.fixture
def fast_retries():
    """Skip backoff sleeps between step retries."""
    with patch("appforge.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI AsyncOpenAI client."""
    client = AsyncMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def mock_anthropic_client():
    """Mock Anthropic AsyncAnthropic client."""
    client = AsyncMock()
    client.messages.create = AsyncMock()
    return client
