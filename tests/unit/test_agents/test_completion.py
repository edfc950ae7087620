"""Tests for completion detection and the summary router."""

from unittest.mock import MagicMock

from appforge.agents import (
    AgentResponse,
    OutputItem,
    completion_hook,
    detect_completion,
    latch_summary,
    summary_router,
)
from appforge.core.state import RunState


class TestDetectCompletion:
    """Tests for detect_completion."""

    def test_marker_anywhere(self):
        """The marker is found anywhere in the text."""
        assert detect_completion("Done.\n<task_summary>\nBuilt it\n</task_summary>") is True

    def test_no_marker(self):
        """Text without the marker, or no text, is not a completion."""
        assert detect_completion("still working") is False
        assert detect_completion("") is False
        assert detect_completion(None) is False


class TestLatchSummary:
    """Tests for latch_summary."""

    def test_first_completion_wins(self):
        """Later completions never overwrite the summary."""
        state = RunState()

        assert latch_summary(state, "<task_summary>first</task_summary>") is True
        assert latch_summary(state, "<task_summary>second</task_summary>") is False
        assert state.summary == "<task_summary>first</task_summary>"

    def test_ignores_plain_text(self):
        """Replies without the marker leave the summary empty."""
        state = RunState()
        assert latch_summary(state, "working on it") is False
        assert state.summary == ""


class TestCompletionHook:
    """Tests for completion_hook."""

    def test_latches_from_last_text(self):
        """The whole reply text becomes the summary."""
        network = MagicMock()
        network.state = RunState()
        text = "All done <task_summary>Todo app</task_summary>"
        response = AgentResponse(agent_name="a", output=[OutputItem(type="text", content=text)])

        assert completion_hook(response, network) is response
        assert network.state.summary == text

    def test_without_network(self):
        """Outside a network the hook does nothing."""
        response = AgentResponse(
            agent_name="a", output=[OutputItem(type="text", content="<task_summary>x")]
        )
        assert completion_hook(response, None) is response


class TestSummaryRouter:
    """Tests for summary_router."""

    def test_routes_until_summary(self):
        """The agent runs until a summary exists."""
        agent = MagicMock()
        network = MagicMock()
        network.state = RunState()
        route = summary_router(agent)

        assert route(network) is agent
        network.state.summary = "<task_summary>done"
        assert route(network) is None
