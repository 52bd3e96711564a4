from pydantic import BaseModel, Field, field_validator

from parseai.models.chat import ChatSession, MessageRole


class HistoryItem(BaseModel):
    """A prior turn passed to the answer flow."""

    role: MessageRole
    content: str


class ParseDocumentRequest(BaseModel):
    """Request payload for the parse document flow.

    Attributes:
        document_data_uri: Document (PDF, DOCX, image, text) as a base64 data URI.
    """

    document_data_uri: str = Field(..., min_length=1)


class ParseDocumentResponse(BaseModel):
    parsed_text: str


class AnswerRequest(BaseModel):
    """Request payload for the answer flow.

    Attributes:
        question: The question to answer.
        model: Model to use; the configured default when omitted.
        history: Earlier conversation turns.
        document_content: Document text to answer from.
        image_data_uri: Image to answer about, as a base64 data URI.
    """

    question: str = Field(..., min_length=1)
    model: str | None = None
    history: list[HistoryItem] = Field(default_factory=list)
    document_content: str | None = None
    image_data_uri: str | None = None

    @field_validator("question", mode="before")
    @classmethod
    def strip_question(cls, v: str) -> str:
        """Strip whitespace from question before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class AnswerResponse(BaseModel):
    answer: str
    reasoning: str


class TitleRequest(BaseModel):
    message: str = Field(..., min_length=1)


class TitleResponse(BaseModel):
    title: str


class AskRequest(BaseModel):
    """Request payload for posting a question to a session.

    Attributes:
        question: User's question.
        model: Optional model override for this question.
    """

    question: str = Field(..., min_length=1)
    model: str | None = None

    @field_validator("question", mode="before")
    @classmethod
    def strip_question(cls, v: str) -> str:
        """Strip whitespace from question before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class RenameRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)


class SelectModelRequest(BaseModel):
    model: str = Field(..., min_length=1)


class SessionSummary(BaseModel):
    """Sidebar entry for a session.

    Attributes:
        id: Session identifier.
        title: Display title.
        message_count: Number of messages in the session.
        has_document: Whether a document is attached.
        active: Whether this is the active session.
    """

    id: str
    title: str
    message_count: int = Field(ge=0)
    has_document: bool
    active: bool

    @classmethod
    def from_session(cls, session: ChatSession, active_id: str | None) -> "SessionSummary":
        return cls(
            id=session.id,
            title=session.title,
            message_count=len(session.messages),
            has_document=session.document is not None,
            active=session.id == active_id,
        )


class SessionList(BaseModel):
    sessions: list[SessionSummary]
    active_session_id: str | None
    model: str


class ModelInfo(BaseModel):
    """A selectable model with today's usage.

    Attributes:
        id: Model identifier.
        label: Display label.
        daily_limit: Calls allowed per UTC day, None when unlimited.
        used: Calls made today by the caller.
        remaining: Calls left today, None when unlimited.
    """

    id: str
    label: str
    daily_limit: int | None
    used: int = Field(ge=0)
    remaining: int | None


class ModelList(BaseModel):
    default: str
    models: list[ModelInfo]


class AuthUserResponse(BaseModel):
    uid: str
    email: str
    display_name: str | None = None


class AuthResponse(BaseModel):
    """Response after a successful sign-in or sign-up.

    Attributes:
        id_token: Bearer token for authenticated requests.
        refresh_token: Token for refreshing the session with the provider.
        expires_in: Token lifetime in seconds.
        user: The signed-in user.
    """

    id_token: str
    refresh_token: str
    expires_in: int
    user: AuthUserResponse
