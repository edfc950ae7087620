"""Checkpoint storage for durable step execution.

A checkpoint records the outcome of one step of one execution, keyed by
``(execution_id, step_key)``, together with a hash of the step's inputs. On
re-entry, ``Step.run()`` reuses a checkpoint only if it succeeded and was
recorded for the same inputs.
"""

import asyncio
import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from ..utils.config import is_localhost_url
from ..utils.serializer import safe_serialize

logger = logging.getLogger(__name__)


class CheckpointRecord(BaseModel):
    """Stored outcome of a single step."""

    step_key: str
    input_hash: str
    success: bool
    outputs: Any | None = None
    output_schema_name: str | None = None
    error: dict[str, Any] | None = None


def compute_input_hash(args: tuple | list, kwargs: dict[str, Any]) -> str:
    """Hash step inputs so a stale checkpoint is never replayed for new inputs."""
    payload = json.dumps(
        {"args": safe_serialize(list(args)), "kwargs": safe_serialize(kwargs)},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CheckpointStore(ABC):
    """Abstract checkpoint backend."""

    @abstractmethod
    async def get(self, execution_id: str, step_key: str) -> CheckpointRecord | None:
        """Return the checkpoint for a step, or None if the step never ran."""
        ...

    @abstractmethod
    async def put(self, execution_id: str, record: CheckpointRecord) -> None:
        """Store (or replace) the checkpoint for ``record.step_key``."""
        ...

    @abstractmethod
    async def list_steps(self, execution_id: str) -> list[CheckpointRecord]:
        """Return every checkpoint recorded for an execution."""
        ...


class InMemoryCheckpointStore(CheckpointStore):
    """Process-local checkpoint store. Survives run re-entry, not process restarts."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, CheckpointRecord]] = {}
        self._lock = asyncio.Lock()

    async def get(self, execution_id: str, step_key: str) -> CheckpointRecord | None:
        record = self._records.get(execution_id, {}).get(step_key)
        return record.model_copy(deep=True) if record else None

    async def put(self, execution_id: str, record: CheckpointRecord) -> None:
        async with self._lock:
            self._records.setdefault(execution_id, {})[record.step_key] = record.model_copy(
                deep=True
            )

    async def list_steps(self, execution_id: str) -> list[CheckpointRecord]:
        return [r.model_copy(deep=True) for r in self._records.get(execution_id, {}).values()]


class HttpCheckpointStore(CheckpointStore):
    """Checkpoint store backed by the application's internal HTTP API.

    Endpoints:
        GET  {api_url}/internal/executions/{execution_id}/steps/{step_key}
        PUT  {api_url}/internal/executions/{execution_id}/steps/{step_key}
        GET  {api_url}/internal/executions/{execution_id}/steps
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        if not api_key and not is_localhost_url(api_url):
            raise ValueError(
                "An API key is required for non-local checkpoint stores. "
                "Set APPFORGE_API_KEY or pass api_key."
            )
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self._client = client
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _step_url(self, execution_id: str, step_key: str) -> str:
        return (
            f"{self.api_url}/internal/executions/{quote(execution_id, safe='')}"
            f"/steps/{quote(step_key, safe='')}"
        )

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, headers=self._headers(), **kwargs)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(method, url, headers=self._headers(), **kwargs)

    async def get(self, execution_id: str, step_key: str) -> CheckpointRecord | None:
        response = await self._request("GET", self._step_url(execution_id, step_key))
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return CheckpointRecord.model_validate(response.json())

    async def put(self, execution_id: str, record: CheckpointRecord) -> None:
        response = await self._request(
            "PUT",
            self._step_url(execution_id, record.step_key),
            json=record.model_dump(mode="json"),
        )
        response.raise_for_status()

    async def list_steps(self, execution_id: str) -> list[CheckpointRecord]:
        response = await self._request(
            "GET", f"{self.api_url}/internal/executions/{quote(execution_id, safe='')}/steps"
        )
        response.raise_for_status()
        return [CheckpointRecord.model_validate(item) for item in response.json().get("steps", [])]
