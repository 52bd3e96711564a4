"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - agent_config: Model catalog with small daily limits
    - fake_assistant: AssistantService double with async flow mocks
    - memory_store: Dict-backed document store
    - usage_service / chat_service: Services wired to the memory store
    - fake_auth_client: Identity provider double accepting "valid-token"
    - async_client: HTTPX client for API testing with dependencies overridden
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from parseai.agent.assistant import AnswerResult, AssistantService, get_assistant_service
from parseai.agent.config import AgentConfig, ModelOption
from parseai.api.app import create_app
from parseai.api.deps import get_document_store
from parseai.auth.firebase import AuthError, AuthUser, FirebaseAuthClient, get_auth_client
from parseai.services.chat import ChatService
from parseai.services.usage import UsageService
from parseai.storage.documents import MappingDocumentStore
from parseai.storage.sessions import SessionRepository

TEST_USER = AuthUser(uid="user-123", email="ada@example.com", display_name="Ada")
AUTH_HEADERS = {"Authorization": "Bearer valid-token"}


class FakeClock:
    """Settable stand-in for the UTC date."""

    def __init__(self, today: str = "2026-10-18") -> None:
        self.today = today

    def __call__(self) -> str:
        return self.today


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(
        api_key="sk-test-key",
        model_name="gpt-4o-mini",
        models=[
            ModelOption(id="gpt-4o-mini", label="GPT-4o mini", daily_limit=3),
            ModelOption(id="gpt-4o", label="GPT-4o", daily_limit=1),
            ModelOption(id="local-llama", label="Llama"),
        ],
        num_history_messages=4,
    )


@pytest.fixture
def fake_assistant(agent_config: AgentConfig) -> MagicMock:
    assistant = MagicMock(spec=AssistantService)
    assistant.config = agent_config
    assistant.parse_document = AsyncMock(return_value="Quarterly revenue grew 12%.")
    assistant.answer_question = AsyncMock(
        return_value=AnswerResult(answer="Revenue grew 12%.", reasoning="Stated on page 1.")
    )
    assistant.generate_title = AsyncMock(return_value="Quarterly Revenue Growth")
    return assistant


@pytest.fixture
def memory_store() -> MappingDocumentStore:
    return MappingDocumentStore({})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def usage_service(memory_store: MappingDocumentStore, clock: FakeClock) -> UsageService:
    return UsageService(memory_store, clock=clock)


@pytest.fixture
def chat_service(
    memory_store: MappingDocumentStore,
    fake_assistant: MagicMock,
    usage_service: UsageService,
    agent_config: AgentConfig,
) -> ChatService:
    return ChatService(
        SessionRepository(memory_store, "local"),
        fake_assistant,
        usage_service,
        config=agent_config,
    )


@pytest.fixture
def fake_auth_client() -> MagicMock:
    async def lookup(id_token: str) -> AuthUser:
        if id_token != "valid-token":
            raise AuthError("INVALID_ID_TOKEN")
        return TEST_USER

    client = MagicMock(spec=FirebaseAuthClient)
    client.enabled = True
    client.lookup = AsyncMock(side_effect=lookup)
    client.sign_in = AsyncMock()
    client.sign_up = AsyncMock()
    return client


@pytest.fixture
async def async_client(
    fake_assistant: MagicMock,
    memory_store: MappingDocumentStore,
    fake_auth_client: MagicMock,
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    app = create_app()
    app.dependency_overrides[get_assistant_service] = lambda: fake_assistant
    app.dependency_overrides[get_document_store] = lambda: memory_store
    app.dependency_overrides[get_auth_client] = lambda: fake_auth_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
