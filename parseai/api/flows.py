"""Stateless endpoints for the three AI flows.

These expose parse / answer / title directly for clients that manage their
own session state. Calls by signed-in users count against their daily
model limits.
"""

import logging

from agno.exceptions import ModelProviderError
from fastapi import APIRouter, Depends, HTTPException, status

from parseai.agent.assistant import AssistantService, ModelBusyError, get_assistant_service
from parseai.agent.config import UnknownModelError
from parseai.api.deps import get_optional_user, get_usage_service
from parseai.auth.firebase import AuthUser
from parseai.models.schemas import (
    AnswerRequest,
    AnswerResponse,
    ParseDocumentRequest,
    ParseDocumentResponse,
    TitleRequest,
    TitleResponse,
)
from parseai.parsing.documents import MAX_FILE_SIZE, DocumentParseError, decode_data_uri
from parseai.services.chat import fallback_title
from parseai.services.usage import UsageLimitExceeded, UsageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/parse-document", response_model=ParseDocumentResponse)
async def parse_document(
    request: ParseDocumentRequest,
    assistant: AssistantService = Depends(get_assistant_service),
) -> ParseDocumentResponse:
    """Extract the text content of a document sent as a data URI.

    Raises:
        400: Malformed data URI.
        413: Document exceeds 10MB.
        422: The model could not parse the document.
    """
    try:
        decoded = decode_data_uri(request.document_data_uri)
    except DocumentParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if len(decoded.data) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail="Document exceeds maximum allowed (10MB)",
        )

    try:
        parsed_text = await assistant.parse_document(request.document_data_uri)
    except Exception as e:
        logger.error(f"Parsing failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Could not parse the document. Please try another file.",
        ) from e

    return ParseDocumentResponse(parsed_text=parsed_text)


@router.post("/answer", response_model=AnswerResponse)
async def answer(
    request: AnswerRequest,
    assistant: AssistantService = Depends(get_assistant_service),
    usage: UsageService = Depends(get_usage_service),
    user: AuthUser | None = Depends(get_optional_user),
) -> AnswerResponse:
    """Answer a question from a document, an image or general knowledge.

    A rate-limited or overloaded model yields a normal response whose answer
    explains the situation.

    Raises:
        400: Unknown model or malformed image data URI.
        429: The caller used up today's calls for the model.
        502: The model provider failed.
    """
    try:
        option = assistant.config.get_model(request.model)
    except UnknownModelError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if user is not None:
        try:
            usage.check_quota(user.uid, option)
        except UsageLimitExceeded as e:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e)) from e

    try:
        result = await assistant.answer_question(
            request.question,
            model=option.id,
            history=request.history,
            document_content=request.document_content,
            image_data_uri=request.image_data_uri,
        )
    except ModelBusyError as e:
        return AnswerResponse(answer=e.answer, reasoning=e.reasoning)
    except DocumentParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except ModelProviderError as e:
        logger.error(f"Answering failed with {option.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The model could not answer. Please try again.",
        ) from e

    if user is not None:
        usage.record_usage(user.uid, option.id)

    return AnswerResponse(answer=result.answer, reasoning=result.reasoning)


@router.post("/title", response_model=TitleResponse)
async def title(
    request: TitleRequest,
    assistant: AssistantService = Depends(get_assistant_service),
) -> TitleResponse:
    """Generate a title of five words or fewer for a conversation.

    Falls back to the start of the message when the model fails.
    """
    try:
        generated = await assistant.generate_title(request.message)
    except ModelProviderError as e:
        logger.warning(f"Title generation failed, truncating message instead: {e}")
        generated = ""
    return TitleResponse(title=generated or fallback_title(request.message))
