"""Message and fragment models shared with the web application.

Field aliases are the camelCase names the application's database and API
use; ``Fragment`` in particular must serialize as
``{"sandboxUrl", "title", "files"}``.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


class MessageType(str, Enum):
    RESULT = "RESULT"
    ERROR = "ERROR"


class Fragment(BaseModel):
    """Artifact of a successful run: preview URL, title and file snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    sandbox_url: str = Field(alias="sandboxUrl")
    title: str
    files: dict[str, str] = Field(default_factory=dict)


class NewMessage(BaseModel):
    """A message to be created.

    ``idempotency_key`` lets a store recognise a repeated create (for example
    a re-executed save step) and return the existing message instead.
    """

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(alias="projectId")
    content: str
    role: MessageRole
    type: MessageType = MessageType.RESULT
    fragment: Fragment | None = None
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")


class Message(NewMessage):
    """A persisted message."""

    id: str
    created_at: datetime = Field(alias="createdAt")
