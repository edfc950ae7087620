"""Persisted conversation messages and run outcomes."""

from .models import Fragment, Message, MessageRole, MessageType, NewMessage
from .store import HttpMessageStore, InMemoryMessageStore, MessageStore

__all__ = [
    "Fragment",
    "Message",
    "MessageRole",
    "MessageType",
    "NewMessage",
    "MessageStore",
    "InMemoryMessageStore",
    "HttpMessageStore",
]
