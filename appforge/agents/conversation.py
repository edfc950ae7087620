"""Conversation priming from persisted messages."""

from typing import Any

from ..persistence.models import MessageRole
from ..persistence.store import MessageStore

DEFAULT_HISTORY_LIMIT = 5


async def prime_conversation(
    store: MessageStore, project_id: str, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[dict[str, Any]]:
    """Load the last ``limit`` messages of a project as agent messages.

    The store returns newest first; the result is oldest first. Assistant
    messages keep the ``assistant`` role, everything else becomes ``user``.
    """
    stored = await store.find_messages(project_id, limit)
    messages = [
        {
            "role": "assistant" if message.role == MessageRole.ASSISTANT else "user",
            "content": message.content,
        }
        for message in stored
    ]
    messages.reverse()
    return messages
