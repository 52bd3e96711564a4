"""Chat session orchestration.

Sequences the upload -> parse -> hold as context -> answer flow on top of
the assistant, usage counters and session storage. Every change is
persisted wholesale as soon as it is made.
"""

import asyncio
import logging

from parseai.agent.assistant import AssistantService, ModelBusyError
from parseai.agent.config import AgentConfig, ModelOption, UnknownModelError
from parseai.models.chat import (
    DEFAULT_TITLE,
    GREETING_ID,
    ChatSession,
    ChatState,
    Document,
    MessageRole,
    greeting_message,
)
from parseai.models.schemas import HistoryItem, ModelInfo
from parseai.parsing.documents import DocumentParseError, prepare_upload
from parseai.services.usage import UsageLimitExceeded, UsageService
from parseai.storage.sessions import SessionRepository

logger = logging.getLogger(__name__)

TITLE_FALLBACK_LENGTH = 30

PARSE_FAILED_REPLY = "Sorry, I couldn't read that document. Please try another one."
ANSWER_FAILED_REPLY = "Sorry, I encountered an error while trying to answer. Please try again."


class SessionNotFoundError(LookupError):
    """Raised when a session id does not exist for the owner."""

    pass


def fallback_title(text: str) -> str:
    """First 30 characters of a message, with an ellipsis when cut."""
    text = " ".join(text.split())
    if len(text) > TITLE_FALLBACK_LENGTH:
        return text[:TITLE_FALLBACK_LENGTH] + "..."
    return text


def _limit_reply(error: UsageLimitExceeded) -> str:
    return (
        f"You've reached today's limit of {error.model.daily_limit} requests for "
        f"`{error.model.label}`. Please try again tomorrow, or select a different model "
        "from the settings."
    )


class ChatService:
    """Session list, messages, document attachment and model selection for one owner."""

    def __init__(
        self,
        repository: SessionRepository,
        assistant: AssistantService,
        usage: UsageService,
        config: AgentConfig | None = None,
    ) -> None:
        """Initialize the chat service.

        Args:
            repository: Storage for the owner's sessions.
            assistant: Service for the parse, answer and title flows.
            usage: Daily usage counters.
            config: Model catalog; taken from the assistant when omitted.
        """
        self._repository = repository
        self._assistant = assistant
        self._usage = usage
        self._config = config or assistant.config

    @property
    def owner(self) -> str:
        return self._repository.owner

    # === Session list ===

    def load(self) -> ChatState:
        """Load the owner's state, making sure an active session exists."""
        state = self._repository.load()
        changed = False

        if not state.sessions:
            session = ChatSession()
            state.sessions.append(session)
            state.active_session_id = session.id
            changed = True
        elif state.find(state.active_session_id or "") is None:
            state.active_session_id = state.sessions[0].id
            changed = True

        if changed:
            self._repository.save(state)
        return state

    def active_session(self) -> ChatSession:
        state = self.load()
        return self._get(state, state.active_session_id or "")

    def get_session(self, session_id: str) -> ChatSession:
        return self._get(self.load(), session_id)

    def create_session(self) -> ChatSession:
        state = self._repository.load()
        session = ChatSession()
        state.sessions.insert(0, session)
        state.active_session_id = session.id
        self._repository.save(state)
        logger.info(f"Created session {session.id} for {self.owner}")
        return session

    def select_session(self, session_id: str) -> ChatSession:
        state = self.load()
        session = self._get(state, session_id)
        state.active_session_id = session.id
        self._repository.save(state)
        return session

    def rename_session(self, session_id: str, title: str) -> ChatSession:
        title = title.strip()
        if not title:
            raise ValueError("Title must not be empty")
        state = self.load()
        session = self._get(state, session_id)
        session.title = title
        self._repository.save(state)
        return session

    def delete_session(self, session_id: str) -> ChatState:
        """Delete a session.

        The first remaining session becomes active when the active one is
        deleted. Deleting the last session clears storage and starts a new one.
        """
        state = self.load()
        self._get(state, session_id)
        state.sessions = [s for s in state.sessions if s.id != session_id]
        logger.info(f"Deleted session {session_id} for {self.owner}")

        if not state.sessions:
            self._repository.clear()
            fresh = ChatSession()
            state = ChatState(sessions=[fresh], active_session_id=fresh.id, model=state.model)
        elif state.active_session_id == session_id:
            state.active_session_id = state.sessions[0].id

        self._repository.save(state)
        return state

    def clear_session(self, session_id: str) -> ChatSession:
        """Reset a session to the greeting and drop its document."""
        state = self.load()
        session = self._get(state, session_id)
        session.messages = [greeting_message()]
        session.document = None
        self._repository.save(state)
        return session

    # === Model selection ===

    def current_model(self, state: ChatState | None = None) -> ModelOption:
        state = state or self._repository.load()
        try:
            return self._config.get_model(state.model)
        except UnknownModelError:
            logger.warning(f"Stored model {state.model} is no longer available, using default")
            return self._config.get_model(None)

    def select_model(self, model_id: str) -> ModelOption:
        option = self._config.get_model(model_id)
        state = self.load()
        state.model = option.id
        self._repository.save(state)
        return option

    def model_usage(self) -> list[ModelInfo]:
        """The model catalog with today's usage for the owner."""
        return self._usage.describe(self.owner, self._config.models)

    # === Documents ===

    async def attach_document(self, session_id: str, filename: str | None, content: bytes) -> ChatSession:
        """Validate, parse and attach an uploaded file to a session.

        Raises:
            DocumentParseError: The upload was rejected or could not be parsed.
            SessionNotFoundError: The session does not exist.
        """
        self.get_session(session_id)
        upload = prepare_upload(filename, content)

        try:
            parsed_text = await self._assistant.parse_document(upload.data_uri)
        except Exception as e:
            logger.error(f"Parsing failed for {upload.name}: {e}")
            state = self.load()
            session = self._get(state, session_id)
            session.add_message(MessageRole.ASSISTANT, PARSE_FAILED_REPLY)
            self._repository.save(state)
            raise DocumentParseError("Could not parse the document. Please try another file.") from e

        state = self.load()
        session = self._get(state, session_id)
        session.document = Document(
            name=upload.name,
            content=parsed_text,
            mime_type=upload.mime_type,
            data_uri=upload.data_uri if upload.is_image else None,
        )
        session.add_message(
            MessageRole.SYSTEM,
            f'Successfully parsed "{upload.name}". You can now ask questions about it.',
        )
        if session.title == DEFAULT_TITLE:
            session.title = upload.name
        self._repository.save(state)

        logger.info(f"Attached {upload.name} to session {session_id}")
        return session

    def remove_document(self, session_id: str) -> ChatSession:
        state = self.load()
        session = self._get(state, session_id)
        if session.document is None:
            return session

        name = session.document.name
        session.document = None
        session.add_message(
            MessageRole.SYSTEM,
            f'Removed document "{name}". The conversation will now be based on general knowledge.',
        )
        self._repository.save(state)
        return session

    # === Questions ===

    async def ask(self, session_id: str, question: str, model: str | None = None) -> ChatSession:
        """Post a question to a session and append the assistant's reply.

        Args:
            session_id: Target session.
            question: The user's question.
            model: Model override; the owner's selected model when omitted.

        Returns:
            The updated session, ending with the assistant's reply.

        Raises:
            ValueError: The question is empty.
            SessionNotFoundError: The session does not exist.
            UnknownModelError: The model override is not in the catalog.
        """
        question = question.strip()
        if not question:
            raise ValueError("Question must not be empty")

        state = self.load()
        session = self._get(state, session_id)
        option = self._config.get_model(model) if model else self.current_model(state)

        history = self._history(session)
        document = session.document
        needs_title = session.title == DEFAULT_TITLE

        session.add_message(MessageRole.USER, question)
        self._repository.save(state)

        if needs_title:
            title, reply = await asyncio.gather(
                self._make_title(question),
                self._answer(question, option, history, document),
            )
        else:
            title, reply = None, await self._answer(question, option, history, document)

        state = self.load()
        session = self._get(state, session_id)
        if title and session.title == DEFAULT_TITLE:
            session.title = title
        session.add_message(MessageRole.ASSISTANT, reply)
        self._repository.save(state)
        return session

    async def _answer(
        self,
        question: str,
        option: ModelOption,
        history: list[HistoryItem],
        document: Document | None,
    ) -> str:
        try:
            self._usage.check_quota(self.owner, option)
            result = await self._assistant.answer_question(
                question,
                model=option.id,
                history=history,
                document_content=document.content if document else None,
                image_data_uri=document.data_uri if document and document.is_image else None,
            )
        except UsageLimitExceeded as e:
            logger.info(f"{self.owner} is over the daily limit for {option.id}")
            return _limit_reply(e)
        except ModelBusyError as e:
            return e.answer
        except Exception:
            logger.exception(f"Answering failed with {option.id}")
            return ANSWER_FAILED_REPLY

        self._usage.record_usage(self.owner, option.id)
        return result.answer

    async def _make_title(self, question: str) -> str:
        try:
            title = await self._assistant.generate_title(question)
        except Exception as e:
            logger.warning(f"Title generation failed, truncating message instead: {e}")
            title = ""
        return title or fallback_title(question)

    def _history(self, session: ChatSession) -> list[HistoryItem]:
        turns = [
            HistoryItem(role=m.role, content=m.content)
            for m in session.messages
            if m.role in (MessageRole.USER, MessageRole.ASSISTANT) and m.id != GREETING_ID
        ]
        limit = self._config.num_history_messages
        return turns[-limit:] if limit else []

    @staticmethod
    def _get(state: ChatState, session_id: str) -> ChatSession:
        session = state.find(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session
