"""Tests for message models and stores."""

import json

import httpx
import pytest

from appforge.persistence import (
    Fragment,
    HttpMessageStore,
    InMemoryMessageStore,
    Message,
    MessageRole,
    MessageType,
    NewMessage,
)


class TestModels:
    """Tests for the message models."""

    def test_fragment_serializes_with_aliases(self):
        """Fragments use the application's camelCase field names."""
        fragment = Fragment(sandbox_url="https://3000-x.e2b.app", title="Todo", files={"a": "b"})

        assert fragment.model_dump(by_alias=True) == {
            "sandboxUrl": "https://3000-x.e2b.app",
            "title": "Todo",
            "files": {"a": "b"},
        }

    def test_message_from_api_payload(self):
        """API payloads validate by alias."""
        message = Message.model_validate(
            {
                "id": "m1",
                "projectId": "p1",
                "content": "hi",
                "role": "USER",
                "type": "RESULT",
                "createdAt": "2025-01-01T00:00:00Z",
            }
        )

        assert message.project_id == "p1"
        assert message.role is MessageRole.USER
        assert message.fragment is None


class TestInMemoryMessageStore:
    """Tests for InMemoryMessageStore."""

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamp(self):
        """Created messages get an id and creation time."""
        store = InMemoryMessageStore()

        message = await store.create_message(
            NewMessage(project_id="p1", content="hello", role=MessageRole.USER)
        )

        assert message.id
        assert message.created_at.tzinfo is not None
        assert store.messages == [message]

    @pytest.mark.asyncio
    async def test_find_newest_first_with_limit(self):
        """find_messages returns the newest messages of the project first."""
        store = InMemoryMessageStore()
        for i in range(4):
            await store.create_message(
                NewMessage(project_id="p1", content=str(i), role=MessageRole.USER)
            )
        await store.create_message(NewMessage(project_id="p2", content="x", role=MessageRole.USER))

        found = await store.find_messages("p1", 3)

        assert [m.content for m in found] == ["3", "2", "1"]
        assert await store.find_messages("p1", 0) == []

    @pytest.mark.asyncio
    async def test_idempotency_key_deduplicates(self):
        """Repeated creates with the same key return the first message."""
        store = InMemoryMessageStore()
        new = NewMessage(
            project_id="p1",
            content="Something went wrong. Please try again.",
            role=MessageRole.ASSISTANT,
            type=MessageType.ERROR,
            idempotency_key="exec-1",
        )

        first = await store.create_message(new)
        second = await store.create_message(new)

        assert first.id == second.id
        assert len(store.messages) == 1


class TestHttpMessageStore:
    """Tests for HttpMessageStore."""

    def test_requires_api_key_for_remote_url(self):
        """Remote URLs need an API key."""
        with pytest.raises(ValueError, match="API key"):
            HttpMessageStore(api_url="https://app.example.com")

    @pytest.mark.asyncio
    async def test_find_messages(self):
        """Messages are requested newest first with the limit."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "messages": [
                        {
                            "id": "m2",
                            "projectId": "p1",
                            "content": "reply",
                            "role": "ASSISTANT",
                            "type": "RESULT",
                            "createdAt": "2025-01-01T00:00:01Z",
                        }
                    ]
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = HttpMessageStore("https://app.example.com", api_key="secret", client=client)
            messages = await store.find_messages("p1", 5)

        assert messages[0].content == "reply"
        request = requests[0]
        assert request.url.path == "/internal/projects/p1/messages"
        assert request.url.params["limit"] == "5"
        assert request.url.params["order"] == "desc"
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_create_message_sends_fragment_and_idempotency_key(self):
        """Creates post camelCase JSON with the idempotency header."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            body = json.loads(request.content)
            return httpx.Response(
                201, json={**body, "id": "m1", "createdAt": "2025-01-01T00:00:00Z"}
            )

        new = NewMessage(
            project_id="p1",
            content="Here's what I built for you.",
            role=MessageRole.ASSISTANT,
            fragment=Fragment(sandbox_url="https://h", title="Generated Code", files={"a": "1"}),
            idempotency_key="exec-9",
        )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = HttpMessageStore("http://localhost:3000", client=client)
            created = await store.create_message(new)

        body = json.loads(requests[0].content)
        assert body["projectId"] == "p1"
        assert body["fragment"] == {"sandboxUrl": "https://h", "title": "Generated Code", "files": {"a": "1"}}
        assert requests[0].headers["Idempotency-Key"] == "exec-9"
        assert "Authorization" not in requests[0].headers
        assert created.id == "m1"
        assert created.fragment.sandbox_url == "https://h"
