"""Event publishing for event-triggered workflows."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from ..core.workflow import get_workflows_for_event

if TYPE_CHECKING:
    from ..runtime.worker import ExecutionRecord, Worker

logger = logging.getLogger(__name__)


class EventPayload(BaseModel):
    """An event as published.

    Attributes:
        id: Event ID (UUID string)
        topic: Event topic, e.g. "code-agent/run"
        data: Event payload (dict), passed to every triggered workflow
        created_at: When the event was published
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    topic: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UnknownEventError(Exception):
    """No registered workflow is triggered by the published topic."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"No workflow is triggered by event '{topic}'")


def publish(worker: Worker, event: EventPayload) -> list[ExecutionRecord]:
    """Start one execution per workflow triggered by ``event.topic``.

    Executions run in the background on ``worker``; the returned records can
    be used to look them up or wait for them.

    Raises:
        UnknownEventError: If no workflow is triggered by the topic
        pydantic.ValidationError: If the event data does not match a
            workflow's payload schema (nothing is started in that case)
    """
    workflows = get_workflows_for_event(event.topic)
    if not workflows:
        raise UnknownEventError(event.topic)

    for wf in workflows:
        wf._prepare_payload(event.data)

    records = [worker.submit(wf.id, event.data) for wf in workflows]
    logger.info(
        "Published event %s (%s) -> %s",
        event.id,
        event.topic,
        ", ".join(r.execution_id for r in records),
    )
    return records
