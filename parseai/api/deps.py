"""FastAPI dependencies: caller identity and per-request services."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from parseai.agent.assistant import AssistantService, get_assistant_service
from parseai.auth.firebase import AuthError, AuthUser, FirebaseAuthClient, get_auth_client
from parseai.services.chat import ChatService
from parseai.services.usage import UsageService
from parseai.storage.documents import DocumentStore, LazyDocumentStore, get_remote_store
from parseai.storage.sessions import SessionRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_document_store() -> DocumentStore:
    """Remote store, opened only once a route reads or writes through it."""
    return LazyDocumentStore(get_remote_store)


def get_usage_service(store: DocumentStore = Depends(get_document_store)) -> UsageService:
    return UsageService(store)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_client: FirebaseAuthClient = Depends(get_auth_client),
) -> AuthUser | None:
    """Resolve the bearer token to a user; None when no token was sent.

    Raises:
        HTTPException: 401 if a token was sent but is not valid.
    """
    if credentials is None:
        return None
    try:
        return await auth_client.lookup(credentials.credentials)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user(user: AuthUser | None = Depends(get_optional_user)) -> AuthUser:
    """Require a signed-in user.

    Raises:
        HTTPException: 401 if no bearer token was sent.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to access your chat history",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_chat_service(
    user: AuthUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
    usage: UsageService = Depends(get_usage_service),
    assistant: AssistantService = Depends(get_assistant_service),
) -> ChatService:
    return ChatService(SessionRepository(store, user.uid), assistant, usage)
