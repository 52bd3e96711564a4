"""Per-browser settings kept in NiceGUI user storage, plus transient page state."""

import asyncio
from typing import Any

from nicegui import app

from parseai.agent.assistant import get_assistant_service
from parseai.auth.firebase import AuthSession
from parseai.services.chat import ChatService
from parseai.services.usage import UsageService
from parseai.storage.documents import DocumentStore, MappingDocumentStore, get_remote_store
from parseai.storage.sessions import SessionRepository

AUTH_KEY = "parseai_auth"
THEME_KEY = "parseai_theme"
LOCAL_OWNER = "local"


def current_user() -> dict[str, Any] | None:
    return app.storage.user.get(AUTH_KEY)


def remember_user(session: AuthSession) -> None:
    app.storage.user[AUTH_KEY] = {
        "uid": session.user.uid,
        "email": session.user.email,
        "display_name": session.user.display_name,
        "id_token": session.id_token,
    }


def forget_user() -> None:
    app.storage.user.pop(AUTH_KEY, None)


def account_summary(user: dict[str, Any] | None) -> str:
    """Account line for the settings dialog."""
    if user is None:
        return "Sign in to keep your chats across devices."
    return f"Signed in as {user.get('display_name') or user.get('email')}"


def is_dark_theme() -> bool:
    return app.storage.user.get(THEME_KEY, "dark") == "dark"


def save_theme(dark: bool) -> None:
    app.storage.user[THEME_KEY] = "dark" if dark else "light"


def build_chat_service() -> ChatService:
    """Chat service for this browser.

    Anonymous visitors keep everything in browser storage; signed-in users
    use the remote store keyed by their user id.
    """
    user = current_user()
    store: DocumentStore
    if user:
        store, owner = get_remote_store(), user["uid"]
    else:
        store, owner = MappingDocumentStore(app.storage.user), LOCAL_OWNER
    return ChatService(SessionRepository(store, owner), get_assistant_service(), UsageService(store))


class ViewState:
    """Transient page state that is never persisted."""

    def __init__(self) -> None:
        self.is_loading: bool = False
        self.loading_message: str = ""
        self.pending_question: str | None = None
        self.reveal_message_id: str | None = None
        self.reveal_task: asyncio.Task | None = None

    def start(self, message: str) -> None:
        self.is_loading = True
        self.loading_message = message

    def stop(self) -> None:
        self.is_loading = False
        self.loading_message = ""
        self.pending_question = None

    def track_reveal(self, task: asyncio.Task) -> None:
        """Remember the running typewriter reveal, stopping any earlier one."""
        self.cancel_reveal()
        self.reveal_task = task

    def cancel_reveal(self) -> None:
        """Stop the typewriter reveal; the message it writes to is being re-rendered."""
        if self.reveal_task is not None and not self.reveal_task.done():
            self.reveal_task.cancel()
        self.reveal_task = None
