"""Persistence of an owner's chat sessions."""

import logging

from pydantic import ValidationError

from parseai.models.chat import ChatState
from parseai.storage.documents import DocumentStore

logger = logging.getLogger(__name__)

SESSIONS_COLLECTION = "parseai_sessions"


class SessionRepository:
    """Loads and saves the whole ChatState of one owner as a single document."""

    def __init__(self, store: DocumentStore, owner: str) -> None:
        """Initialize the repository.

        Args:
            store: Backing document store.
            owner: Identity provider user id, or ``local`` for browser storage.
        """
        self._store = store
        self.owner = owner

    def load(self) -> ChatState:
        data = self._store.get(SESSIONS_COLLECTION, self.owner)
        if data is None:
            return ChatState()
        try:
            return ChatState.model_validate(data)
        except ValidationError as e:
            logger.error(f"Failed to load sessions for {self.owner}, starting fresh: {e}")
            return ChatState()

    def save(self, state: ChatState) -> None:
        self._store.set(SESSIONS_COLLECTION, self.owner, state.model_dump(mode="json"))

    def clear(self) -> None:
        self._store.delete(SESSIONS_COLLECTION, self.owner)
