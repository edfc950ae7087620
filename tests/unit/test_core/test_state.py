"""Tests for run state."""

import asyncio

import pytest
from pydantic import ValidationError

from appforge.core.state import RunState


class TestRunState:
    """Tests for RunState."""

    def test_defaults(self):
        """A new state has no summary and no files."""
        state = RunState()
        assert state.summary == ""
        assert state.files == {}
        assert state.has_files is False

    def test_validates_assignment(self):
        """Assigning a value of the wrong shape is rejected."""
        state = RunState()
        with pytest.raises(ValidationError):
            state.files = ["not", "a", "map"]

    @pytest.mark.asyncio
    async def test_edit_files_commits_changes(self):
        """Changes made inside edit_files are kept."""
        state = RunState()
        async with state.edit_files() as files:
            files["app/page.tsx"] = "page"

        assert state.files == {"app/page.tsx": "page"}
        assert state.has_files is True

    @pytest.mark.asyncio
    async def test_edit_files_commits_on_error(self):
        """Paths written before an error stay recorded."""
        state = RunState()
        with pytest.raises(RuntimeError):
            async with state.edit_files() as files:
                files["a.txt"] = "a"
                raise RuntimeError("write failed")

        assert state.files == {"a.txt": "a"}

    @pytest.mark.asyncio
    async def test_concurrent_edits_do_not_lose_updates(self):
        """Concurrent edits are serialized."""
        state = RunState()

        async def write(path):
            async with state.edit_files() as files:
                await asyncio.sleep(0)
                files[path] = path

        await asyncio.gather(*(write(f"file{i}.txt") for i in range(5)))

        assert len(state.files) == 5
