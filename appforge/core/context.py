"""Context handed to workflow functions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .checkpoints import CheckpointStore


class WorkflowContext:
    """What a running workflow knows about its execution.

    ``ctx.step.run(...)`` checkpoints each step under ``execution_id``. When
    the worker re-enters a failed execution it builds a new context with the
    same id and a higher ``attempt``, and completed steps come back from
    ``checkpoint_store`` instead of running again.
    """

    def __init__(
        self,
        workflow_id: str,
        execution_id: str,
        checkpoint_store: CheckpointStore,
        attempt: int = 1,
        started_at: datetime | None = None,
    ):
        self.workflow_id = workflow_id
        self.execution_id = execution_id
        self.checkpoint_store = checkpoint_store
        self.attempt = attempt
        self.started_at = started_at or datetime.now(timezone.utc)

        from .step import Step

        self.step = Step(self)

    def bind(self, services: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build the value published through the execution context variable."""
        return {
            **(services or {}),
            "workflow_id": self.workflow_id,
            "execution_id": self.execution_id,
            "attempt": self.attempt,
        }
