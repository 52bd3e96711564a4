"""Agno agent logic for the AI flows.

Responsibilities:
    - Document parsing through a multimodal model call
    - Question answering grounded in a document, an image or general knowledge
    - Conversation title generation
    - Model catalog and provider configuration

Leverages the Agno framework for model calls and structured outputs.
Maintains clean separation from the HTTP and UI layers.
"""

from parseai.agent.assistant import (
    AnswerResult,
    AssistantService,
    ModelBusyError,
    get_assistant_service,
)
from parseai.agent.config import (
    AgentConfig,
    ModelOption,
    UnknownModelError,
    get_agent_config,
)

__all__ = [
    "AgentConfig",
    "AnswerResult",
    "AssistantService",
    "ModelBusyError",
    "ModelOption",
    "UnknownModelError",
    "get_agent_config",
    "get_assistant_service",
]
