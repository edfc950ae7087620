"""Message stores.

``find_messages`` returns the newest messages first; callers that need
chronological order reverse the result themselves.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from ..utils.config import is_localhost_url
from .models import Message, NewMessage

logger = logging.getLogger(__name__)


class MessageStore(ABC):
    """Abstract message persistence."""

    @abstractmethod
    async def find_messages(self, project_id: str, limit: int) -> list[Message]:
        """Return at most ``limit`` messages of a project, newest first."""
        ...

    @abstractmethod
    async def create_message(self, message: NewMessage) -> Message:
        """Create a message (and its fragment, if any).

        When ``message.idempotency_key`` matches an existing message, that
        message is returned and nothing new is created.
        """
        ...


class InMemoryMessageStore(MessageStore):
    """Process-local message store for development and tests."""

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._lock = asyncio.Lock()

    @property
    def messages(self) -> list[Message]:
        """All stored messages in creation order."""
        return list(self._messages)

    async def find_messages(self, project_id: str, limit: int) -> list[Message]:
        if limit <= 0:
            return []
        # Creation order is the list order, so newest first is the reversed list
        matching = [m for m in reversed(self._messages) if m.project_id == project_id]
        return [m.model_copy(deep=True) for m in matching[:limit]]

    async def create_message(self, message: NewMessage) -> Message:
        async with self._lock:
            if message.idempotency_key:
                for existing in self._messages:
                    if existing.idempotency_key == message.idempotency_key:
                        logger.info(
                            "Message with idempotency key %s already exists",
                            message.idempotency_key,
                        )
                        return existing.model_copy(deep=True)

            created = Message(
                **message.model_dump(),
                id=str(uuid.uuid4()),
                created_at=datetime.now(timezone.utc),
            )
            self._messages.append(created)
            return created.model_copy(deep=True)


class HttpMessageStore(MessageStore):
    """Message store backed by the web application's internal HTTP API.

    Endpoints:
        GET  {api_url}/internal/projects/{project_id}/messages?limit=N&order=desc
        POST {api_url}/internal/messages  (Idempotency-Key header when set)
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
                "An API key is required for non-local message stores. "
                "Set APPFORGE_API_KEY or pass api_key."
            )
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self._client = client
        self._timeout = timeout

    def _headers(self, idempotency_key: str | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(method, url, **kwargs)

    async def find_messages(self, project_id: str, limit: int) -> list[Message]:
        response = await self._request(
            "GET",
            f"{self.api_url}/internal/projects/{quote(project_id, safe='')}/messages",
            params={"limit": limit, "order": "desc"},
            headers=self._headers(),
        )
        response.raise_for_status()
        return [Message.model_validate(item) for item in response.json().get("messages", [])]

    async def create_message(self, message: NewMessage) -> Message:
        response = await self._request(
            "POST",
            f"{self.api_url}/internal/messages",
            json=message.model_dump(mode="json", by_alias=True),
            headers=self._headers(message.idempotency_key),
        )
        response.raise_for_status()
        return Message.model_validate(response.json())
