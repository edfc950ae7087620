"""Tests for checkpoint stores and input hashing."""

import json

import httpx
import pytest

from appforge.core.checkpoints import (
    CheckpointRecord,
    HttpCheckpointStore,
    InMemoryCheckpointStore,
    compute_input_hash,
)


class TestComputeInputHash:
    """Tests for compute_input_hash."""

    def test_same_inputs_same_hash(self):
        """Equal inputs hash equally regardless of kwarg order."""
        assert compute_input_hash((1, "a"), {"x": 1, "y": 2}) == compute_input_hash(
            [1, "a"], {"y": 2, "x": 1}
        )

    def test_different_inputs_differ(self):
        """Changing an argument changes the hash."""
        assert compute_input_hash(("a",), {}) != compute_input_hash(("b",), {})

    def test_handles_callables(self):
        """Non-serializable arguments fall back to a placeholder."""
        assert compute_input_hash((print,), {})


class TestInMemoryCheckpointStore:
    """Tests for InMemoryCheckpointStore."""

    @pytest.mark.asyncio
    async def test_put_and_get(self):
        """Stored records are returned by execution and step key."""
        store = InMemoryCheckpointStore()
        record = CheckpointRecord(step_key="s1", input_hash="h", success=True, outputs=[1])

        await store.put("exec-1", record)

        assert await store.get("exec-1", "s1") == record
        assert await store.get("exec-2", "s1") is None
        assert await store.get("exec-1", "s2") is None

    @pytest.mark.asyncio
    async def test_returns_copies(self):
        """Mutating a returned record does not change the stored one."""
        store = InMemoryCheckpointStore()
        await store.put(
            "exec-1", CheckpointRecord(step_key="s1", input_hash="h", success=True, outputs=[1])
        )

        fetched = await store.get("exec-1", "s1")
        fetched.outputs.append(2)

        assert (await store.get("exec-1", "s1")).outputs == [1]

    @pytest.mark.asyncio
    async def test_list_steps(self):
        """Every step of an execution is listed."""
        store = InMemoryCheckpointStore()
        for key in ("a", "b"):
            await store.put("exec-1", CheckpointRecord(step_key=key, input_hash="h", success=True))

        steps = await store.list_steps("exec-1")

        assert [s.step_key for s in steps] == ["a", "b"]


class TestHttpCheckpointStore:
    """Tests for HttpCheckpointStore."""

    def test_requires_api_key_for_remote_url(self):
        """Remote URLs need an API key."""
        with pytest.raises(ValueError, match="API key"):
            HttpCheckpointStore(api_url="https://api.example.com")

    def test_localhost_without_api_key(self):
        """Localhost URLs work without an API key."""
        store = HttpCheckpointStore(api_url="http://localhost:3000/")
        assert store.api_url == "http://localhost:3000"

    @pytest.mark.asyncio
    async def test_get_put_and_missing(self):
        """Records round-trip through the HTTP API; 404 means no checkpoint."""
        stored = {}
        seen_auth = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_auth.append(request.headers.get("Authorization"))
            key = request.url.path
            if request.method == "PUT":
                stored[key] = json.loads(request.content)
                return httpx.Response(204)
            if key.endswith("/steps"):
                return httpx.Response(200, json={"steps": list(stored.values())})
            if key in stored:
                return httpx.Response(200, json=stored[key])
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = HttpCheckpointStore(
            api_url="https://api.example.com", api_key="secret", client=client
        )
        record = CheckpointRecord(step_key="save-result", input_hash="h", success=True, outputs={})

        assert await store.get("exec-1", "save-result") is None
        await store.put("exec-1", record)

        assert await store.get("exec-1", "save-result") == record
        assert [r.step_key for r in await store.list_steps("exec-1")] == ["save-result"]
        assert set(seen_auth) == {"Bearer secret"}
        await client.aclose()
