"""Pydantic models for stored records and API payloads.

Provides type safety, validation, and automatic OpenAPI documentation.

Modules:
    - chat: Message, Document, ChatSession, ChatState, UsageRecord
    - schemas: Request/response payloads for the HTTP API
"""

from parseai.models.chat import (
    DEFAULT_TITLE,
    GREETING,
    GREETING_ID,
    ChatSession,
    ChatState,
    Document,
    Message,
    MessageRole,
    UsageRecord,
    greeting_message,
)

__all__ = [
    "DEFAULT_TITLE",
    "GREETING",
    "GREETING_ID",
    "ChatSession",
    "ChatState",
    "Document",
    "Message",
    "MessageRole",
    "UsageRecord",
    "greeting_message",
]
