"""Application services shared by the API and the UI.

Services:
    - chat: session list, messages, document attachment, model selection
    - usage: daily per-model call counters with UTC-day reset
"""

from parseai.services.chat import ChatService, SessionNotFoundError
from parseai.services.usage import UsageLimitExceeded, UsageService

__all__ = ["ChatService", "SessionNotFoundError", "UsageLimitExceeded", "UsageService"]
