"""Unified AppForge class wiring config, services, worker and server together."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from .core.checkpoints import CheckpointStore, HttpCheckpointStore, InMemoryCheckpointStore
from .execution.sandbox import SandboxProvider, get_sandbox_provider
from .execution.types import E2BSandboxConfig, LocalSandboxConfig, SandboxConfig
from .features.events import EventPayload, publish
from .llm.providers import LLMProvider
from .persistence.store import HttpMessageStore, InMemoryMessageStore, MessageStore
from .pipeline.functions import CODE_AGENT_EVENT, code_agent_function
from .runtime.server import AppServer
from .runtime.worker import ExecutionRecord, Worker
from .utils.config import AppForgeConfig

logger = logging.getLogger(__name__)


def _configure_file_logging(log_file: str) -> None:
    """Redirect all logs to a file instead of stdout/stderr."""
    handler = logging.FileHandler(log_file, mode="a")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def build_sandbox_config(config: AppForgeConfig) -> SandboxConfig:
    """Sandbox provider settings derived from the app config."""
    return SandboxConfig(
        env=config.sandbox_env,
        e2b=E2BSandboxConfig(
            template=config.sandbox_template,
            timeout=config.sandbox_timeout_seconds,
            api_key=config.e2b_api_key,
        ),
        local=LocalSandboxConfig(
            workspaces_dir=config.workspaces_dir,
            timeout=config.sandbox_timeout_seconds,
        ),
    )


class AppForge:
    """Config, services, worker and HTTP server in one object.

    Services not passed explicitly are built from ``config``: the sandbox
    provider from ``sandbox_env``, and the message and checkpoint stores from
    ``store`` (in memory, or the web application's internal API).

    Usage::

        forge = AppForge(AppForgeConfig.from_env())

        # Script mode
        record = await forge.run("project-1", "build a todo app")

        # Server mode: POST /api/v1/events {"topic": "code-agent/run", "data": {...}}
        await forge.serve()
    """

    def __init__(
        self,
        config: AppForgeConfig | None = None,
        sandbox_provider: SandboxProvider | None = None,
        message_store: MessageStore | None = None,
        checkpoint_store: CheckpointStore | None = None,
        llm_provider: LLMProvider | None = None,
        host: str = "127.0.0.1",
        port: int = 8000,
        log_file: str | None = None,
    ):
        if log_file:
            _configure_file_logging(log_file)

        self.config = config or AppForgeConfig.from_env()
        self.sandbox_provider = sandbox_provider or get_sandbox_provider(
            build_sandbox_config(self.config)
        )

        if self.config.store == "http":
            self.message_store = message_store or HttpMessageStore(
                self.config.api_url, api_key=self.config.api_key
            )
            self.checkpoint_store = checkpoint_store or HttpCheckpointStore(
                self.config.api_url, api_key=self.config.api_key
            )
        else:
            self.message_store = message_store or InMemoryMessageStore()
            self.checkpoint_store = checkpoint_store or InMemoryCheckpointStore()

        services: dict[str, Any] = {
            "sandbox_provider": self.sandbox_provider,
            "message_store": self.message_store,
            "config": self.config,
        }
        if llm_provider is not None:
            services["llm_provider"] = llm_provider

        self.worker = Worker(
            services=services,
            checkpoint_store=self.checkpoint_store,
            workflows=[code_agent_function],
            max_attempts=self.config.max_attempts,
        )
        self.server = AppServer(self.worker, host=host, port=port)

    async def run(
        self, project_id: str, value: str, execution_id: str | None = None
    ) -> ExecutionRecord:
        """Run the code agent for one prompt and wait for the outcome.

        Passing the ``execution_id`` of an earlier run resumes it.
        """
        return await self.worker.execute(
            code_agent_function.id,
            {"projectId": project_id, "value": value},
            execution_id=execution_id or str(uuid.uuid4()),
        )

    def trigger(self, project_id: str, value: str) -> list[ExecutionRecord]:
        """Publish a ``code-agent/run`` event; the run continues in the background."""
        return publish(
            self.worker,
            EventPayload(topic=CODE_AGENT_EVENT, data={"projectId": project_id, "value": value}),
        )

    async def serve(self):
        """Serve the HTTP API until shutdown."""
        logger.info(
            "Serving on %s:%d (sandbox=%s, store=%s)",
            self.server.host,
            self.server.port,
            self.sandbox_provider.type,
            self.config.store,
        )
        try:
            await self.server.run()
        finally:
            await self.worker.shutdown()

    async def stop(self):
        await self.server.shutdown()
        await self.worker.shutdown()
