"""Agno-backed service for the three AI flows.

Core module for all model calls: document parsing, question answering and
title generation. Each call builds a short-lived Agent for the requested
model with a Pydantic output schema, so callers get typed results instead
of raw completions.

Conversation history is owned by the chat service and passed in
explicitly, so agents are stateless and carry no storage.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from agno.agent import Agent
from agno.exceptions import ModelProviderError
from agno.media import File, Image
from agno.models.openai import OpenAIChat
from agno.run.base import RunStatus
from pydantic import BaseModel, Field

from parseai.agent.config import AgentConfig, get_agent_config
from parseai.agent.prompts import (
    ANSWER_INSTRUCTIONS,
    PARSE_INSTRUCTIONS,
    TITLE_INSTRUCTIONS,
    build_answer_prompt,
    build_parse_prompt,
    build_title_prompt,
)
from parseai.models.schemas import HistoryItem
from parseai.parsing.documents import DataUri, DocumentParseError, decode_data_uri

logger = logging.getLogger(__name__)

MAX_TITLE_WORDS = 5


class ParsedDocument(BaseModel):
    parsed_text: str = Field(..., description="The parsed text content of the document.")


class AnswerResult(BaseModel):
    answer: str = Field(..., description="The answer to the question.")
    reasoning: str = Field(..., description="The reasoning behind the answer.")


class GeneratedTitle(BaseModel):
    title: str = Field(
        ...,
        description="A concise and descriptive title for the conversation, no more than 5 words.",
    )


class ModelBusyError(Exception):
    """Raised when the provider rate-limits or cannot serve the model.

    Carries a user-facing answer so callers can show it in place of a reply.
    """

    def __init__(self, model: str, answer: str, reasoning: str, status_code: int) -> None:
        super().__init__(f"{model}: {reasoning}")
        self.model = model
        self.answer = answer
        self.reasoning = reasoning
        self.status_code = status_code

    def to_result(self) -> AnswerResult:
        return AnswerResult(answer=self.answer, reasoning=self.reasoning)


def _busy_error(model: str, error: ModelProviderError) -> ModelBusyError | None:
    """Translate provider overload responses into a friendly answer."""
    status_code = getattr(error, "status_code", None)
    if status_code == 429:
        return ModelBusyError(
            model,
            answer=(
                f"I'm sorry, but I've hit the request limit for the selected model (`{model}`). "
                "Please try again in a little while, or select a different model from the settings."
            ),
            reasoning="API rate limit exceeded.",
            status_code=429,
        )
    if status_code == 503:
        return ModelBusyError(
            model,
            answer=(
                f"I'm sorry, but the selected model (`{model}`) is currently overloaded. "
                "Please try again in a moment, or select a different model."
            ),
            reasoning="Model service unavailable.",
            status_code=503,
        )
    return None


@dataclass
class ProviderChat(OpenAIChat):
    """OpenAIChat that keeps the provider error behind a failed run.

    Agent runs report model failures as an error status with the message as
    content; the original error carries the HTTP status code.
    """

    last_error: ModelProviderError | None = None

    async def ainvoke(self, *args: Any, **kwargs: Any) -> Any:
        try:
            return await super().ainvoke(*args, **kwargs)
        except ModelProviderError as e:
            self.last_error = e
            raise


def _as_file(data_uri: DataUri) -> File:
    try:
        return File(content=data_uri.data, mime_type=data_uri.mime_type)
    except ValueError:
        # Types outside the provider's list (Word documents) are sent untyped
        return File(content=data_uri.data)


def clean_title(raw: str) -> str:
    """Strip quotes and punctuation noise and cap the title at five words."""
    title = raw.strip().strip("\"'`“”‘’").strip()
    words = title.split()
    return " ".join(words[:MAX_TITLE_WORDS]).rstrip(".:;,")


class AssistantService:
    """Service wrapping Agno agents for the parse, answer and title flows.

    Wraps Agno's Agent with:
    - Per-call model selection from the configured catalog
    - Structured outputs via Pydantic schemas
    - Media handling for images and binary documents
    - Friendly answers for rate-limited or overloaded models
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the assistant service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()

    @property
    def config(self) -> AgentConfig:
        return self._config

    def _create_model(self, model_id: str) -> ProviderChat:
        return ProviderChat(
            id=model_id,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

    def _create_agent(
        self,
        model_id: str,
        instructions: list[str],
        output_schema: type[BaseModel],
    ) -> Agent:
        return Agent(
            model=self._create_model(model_id),
            instructions=instructions,
            output_schema=output_schema,
            telemetry=False,
        )

    async def _run(self, agent: Agent, prompt: str, **media: object) -> object:
        """Run an agent and return its content.

        Raises:
            ModelProviderError: The run ended in an error.
        """
        response = await agent.arun(prompt, **media)
        if response.status == RunStatus.error:
            error = getattr(agent.model, "last_error", None)
            if error is None:
                error = ModelProviderError(str(response.content or "Agent run failed"), model_id=agent.model.id)
            raise error
        return response.content

    async def parse_document(self, document_data_uri: str, model: str | None = None) -> str:
        """Extract the text content of a document.

        Args:
            document_data_uri: PDF, Word document, image or text file as a data URI.
            model: Model to use; the configured default when omitted.

        Returns:
            The extracted text.

        Raises:
            DocumentParseError: If the URI is invalid or no text came back.
            ModelProviderError: The provider failed.
        """
        data_uri = decode_data_uri(document_data_uri)
        model_id = self._config.get_model(model).id
        agent = self._create_agent(model_id, PARSE_INSTRUCTIONS, ParsedDocument)

        if data_uri.mime_type.startswith("text/"):
            text = data_uri.data.decode("utf-8", errors="replace")
            output = await self._run(agent, build_parse_prompt(text))
        elif data_uri.mime_type.startswith("image/"):
            image = Image(content=data_uri.data, mime_type=data_uri.mime_type)
            output = await self._run(agent, build_parse_prompt(), images=[image])
        else:
            output = await self._run(agent, build_parse_prompt(), files=[_as_file(data_uri)])

        if not isinstance(output, ParsedDocument) or not output.parsed_text.strip():
            raise DocumentParseError("The model returned no text for this document")

        logger.info(f"Parsed {data_uri.mime_type} document ({len(output.parsed_text)} chars)")
        return output.parsed_text

    async def answer_question(
        self,
        question: str,
        model: str | None = None,
        history: Sequence[HistoryItem] = (),
        document_content: str | None = None,
        image_data_uri: str | None = None,
    ) -> AnswerResult:
        """Answer a question from a document, an image or general knowledge.

        Args:
            question: The question to answer.
            model: Model to use; the configured default when omitted.
            history: Earlier conversation turns, oldest first.
            document_content: Document text to answer from.
            image_data_uri: Image to answer about, as a data URI.

        Returns:
            AnswerResult with the answer and the reasoning behind it.

        Raises:
            ModelBusyError: The provider rate-limited or could not serve the model.
            ModelProviderError: Any other provider failure.
            UnknownModelError: The model is not in the catalog.
        """
        model_id = self._config.get_model(model).id
        agent = self._create_agent(model_id, ANSWER_INSTRUCTIONS, AnswerResult)

        media: dict[str, object] = {}
        if image_data_uri:
            image = decode_data_uri(image_data_uri)
            media["images"] = [Image(content=image.data, mime_type=image.mime_type)]

        prompt = build_answer_prompt(
            question,
            history=history,
            document_content=document_content,
            has_image=bool(image_data_uri),
        )

        try:
            output = await self._run(agent, prompt, **media)
        except ModelProviderError as e:
            busy = _busy_error(model_id, e)
            if busy is None:
                raise
            logger.warning(f"Model {model_id} unavailable: {busy.reasoning}")
            raise busy from e

        if isinstance(output, AnswerResult):
            return output
        # Some providers ignore the schema and return plain text
        return AnswerResult(answer=str(output or ""), reasoning="")

    async def generate_title(self, message: str, model: str | None = None) -> str:
        """Generate a concise title (five words or fewer) for a conversation.

        Args:
            message: The first user message of the conversation.
            model: Model to use; the configured default when omitted.

        Returns:
            The cleaned title, possibly empty.

        Raises:
            ModelProviderError: The provider failed.
        """
        model_id = self._config.get_model(model).id
        agent = self._create_agent(model_id, TITLE_INSTRUCTIONS, GeneratedTitle)
        output = await self._run(agent, build_title_prompt(message))

        if isinstance(output, GeneratedTitle):
            return clean_title(output.title)
        return clean_title(str(output or ""))


# Module-level singleton instance
_assistant_service: AssistantService | None = None


def get_assistant_service() -> AssistantService:
    """Get or create the global assistant service.

    Returns:
        The AssistantService instance.
    """
    global _assistant_service
    if _assistant_service is None:
        _assistant_service = AssistantService()
    return _assistant_service
