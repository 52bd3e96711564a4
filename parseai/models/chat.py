"""Domain records for chat sessions, documents and model usage.

Everything here is persisted wholesale as JSON on every change, so the
models stay plain and carry no behaviour beyond construction helpers.
"""

import uuid
from enum import Enum

from pydantic import BaseModel, Field

DEFAULT_TITLE = "New Chat"
GREETING_ID = "init"
GREETING = "Hello! Ask me anything, or upload a document to ask questions about it."


def _new_message_id() -> str:
    return uuid.uuid4().hex


def _new_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:16]}"


class MessageRole(str, Enum):
    """Who authored a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """A single message in a session.

    Attributes:
        id: Unique message identifier.
        role: The speaker (user, assistant, or system notice).
        content: The message text.
    """

    id: str = Field(default_factory=_new_message_id)
    role: MessageRole
    content: str


class Document(BaseModel):
    """An uploaded file held as grounding context.

    Attributes:
        name: Original file name.
        content: Text extracted by the parse step.
        mime_type: MIME type of the original upload.
        data_uri: Original upload as a base64 data URI. Only kept for
            images, which are sent back to the model when answering.
    """

    name: str
    content: str
    mime_type: str
    data_uri: str | None = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


def greeting_message() -> Message:
    return Message(id=GREETING_ID, role=MessageRole.ASSISTANT, content=GREETING)


class ChatSession(BaseModel):
    """One conversation with its history and optional document."""

    id: str = Field(default_factory=_new_session_id)
    title: str = DEFAULT_TITLE
    messages: list[Message] = Field(default_factory=lambda: [greeting_message()])
    document: Document | None = None

    def add_message(self, role: MessageRole, content: str) -> Message:
        message = Message(role=role, content=content)
        self.messages.append(message)
        return message


class ChatState(BaseModel):
    """Everything stored for one owner.

    Attributes:
        sessions: Sessions, newest first.
        active_session_id: Session currently shown, if any.
        model: Selected model id, None for the configured default.
    """

    sessions: list[ChatSession] = Field(default_factory=list)
    active_session_id: str | None = None
    model: str | None = None

    def find(self, session_id: str) -> ChatSession | None:
        return next((s for s in self.sessions if s.id == session_id), None)


class UsageRecord(BaseModel):
    """Per-model call counters for one UTC day.

    Attributes:
        last_reset: UTC date (YYYY-MM-DD) the counters belong to.
        usage: Calls made today, keyed by model id.
    """

    last_reset: str
    usage: dict[str, int] = Field(default_factory=dict)
