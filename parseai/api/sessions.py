"""Session endpoints for signed-in users.

Sessions are stored per user in the remote document store. Every route
requires a bearer token from the identity provider.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from parseai.agent.config import UnknownModelError
from parseai.api.deps import get_chat_service
from parseai.models.chat import ChatSession, ChatState
from parseai.models.schemas import (
    AskRequest,
    ModelInfo,
    RenameRequest,
    SelectModelRequest,
    SessionList,
    SessionSummary,
)
from parseai.parsing.documents import MAX_FILE_SIZE, DocumentParseError, UploadRejectedError
from parseai.services.chat import ChatService, SessionNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _not_found(e: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _session_list(service: ChatService, state: ChatState) -> SessionList:
    return SessionList(
        sessions=[SessionSummary.from_session(s, state.active_session_id) for s in state.sessions],
        active_session_id=state.active_session_id,
        model=service.current_model(state).id,
    )


@router.get("", response_model=SessionList)
async def list_sessions(service: ChatService = Depends(get_chat_service)) -> SessionList:
    """List sessions newest first. A first visit creates an empty session."""
    return _session_list(service, service.load())


@router.post("", response_model=ChatSession, status_code=status.HTTP_201_CREATED)
async def create_session(service: ChatService = Depends(get_chat_service)) -> ChatSession:
    """Start a new session and make it active."""
    return service.create_session()


@router.put("/model", response_model=ModelInfo)
async def select_model(
    request: SelectModelRequest,
    service: ChatService = Depends(get_chat_service),
) -> ModelInfo:
    """Select the model used for subsequent questions.

    Raises:
        400: Unknown model.
    """
    try:
        option = service.select_model(request.model)
    except UnknownModelError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return next(m for m in service.model_usage() if m.id == option.id)


@router.get("/{session_id}", response_model=ChatSession)
async def get_session(session_id: str, service: ChatService = Depends(get_chat_service)) -> ChatSession:
    try:
        return service.get_session(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e) from e


@router.patch("/{session_id}", response_model=ChatSession)
async def rename_session(
    session_id: str,
    request: RenameRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatSession:
    try:
        return service.rename_session(session_id, request.title)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.post("/{session_id}/activate", response_model=ChatSession)
async def activate_session(session_id: str, service: ChatService = Depends(get_chat_service)) -> ChatSession:
    try:
        return service.select_session(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e) from e


@router.delete("/{session_id}", response_model=SessionList)
async def delete_session(session_id: str, service: ChatService = Depends(get_chat_service)) -> SessionList:
    """Delete a session and return the remaining list.

    Deleting the last session leaves a fresh empty one.
    """
    try:
        state = service.delete_session(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    return _session_list(service, state)


@router.post("/{session_id}/clear", response_model=ChatSession)
async def clear_session(session_id: str, service: ChatService = Depends(get_chat_service)) -> ChatSession:
    """Reset the messages to the greeting and drop the document."""
    try:
        return service.clear_session(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e) from e


@router.post("/{session_id}/document", response_model=ChatSession)
async def upload_document(
    session_id: str,
    file: UploadFile,
    service: ChatService = Depends(get_chat_service),
) -> ChatSession:
    """Upload a document (PDF, Word, image or text) as grounding context.

    Raises:
        400: Unsupported or empty file.
        404: Unknown session.
        413: File exceeds 10MB.
        422: The model could not parse the document.
    """
    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)",
        )

    try:
        return await service.attach_document(session_id, file.filename, content)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    except UploadRejectedError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DocumentParseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.delete("/{session_id}/document", response_model=ChatSession)
async def remove_document(session_id: str, service: ChatService = Depends(get_chat_service)) -> ChatSession:
    try:
        return service.remove_document(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e) from e


@router.post("/{session_id}/messages", response_model=ChatSession)
async def ask(
    session_id: str,
    request: AskRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatSession:
    """Ask a question; the returned session ends with the assistant's reply.

    Raises:
        400: Unknown model.
        404: Unknown session.
    """
    try:
        return await service.ask(session_id, request.question, model=request.model)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    except UnknownModelError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

