"""The coding-agent run pipeline."""

from .functions import CODE_AGENT_EVENT, RunRequested, code_agent_function, get_run_services
from .materialize import (
    DEFAULT_FRAGMENT_TITLE,
    DEFAULT_RESPONSE,
    ERROR_MESSAGE,
    PREVIEW_PORT,
    RunResult,
    materialize_result,
    response_text,
)

__all__ = [
    "CODE_AGENT_EVENT",
    "RunRequested",
    "RunResult",
    "code_agent_function",
    "get_run_services",
    "materialize_result",
    "response_text",
    "PREVIEW_PORT",
    "DEFAULT_FRAGMENT_TITLE",
    "DEFAULT_RESPONSE",
    "ERROR_MESSAGE",
]
