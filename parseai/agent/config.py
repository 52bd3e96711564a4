"""Agent configuration with environment variable loading.

Pydantic-based configuration for the model calls and the model catalog.
Supports OpenAI and OpenAI-compatible APIs via custom base URL.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_MODEL = "gpt-4o-mini"


class UnknownModelError(ValueError):
    """Raised when a model id is not in the catalog."""

    pass


class ModelOption(BaseModel):
    """A model the user can select.

    Attributes:
        id: Provider model identifier.
        label: Display name.
        daily_limit: Calls allowed per UTC day, None for unlimited.
    """

    id: str = Field(..., min_length=1)
    label: str = ""
    daily_limit: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def default_label(self) -> "ModelOption":
        if not self.label:
            self.label = self.id
        return self


def _default_models() -> list[ModelOption]:
    return [
        ModelOption(id="gpt-4o-mini", label="GPT-4o mini", daily_limit=100),
        ModelOption(id="gpt-4.1-mini", label="GPT-4.1 mini", daily_limit=50),
        ModelOption(id="gpt-4o", label="GPT-4o", daily_limit=20),
    ]


def parse_model_catalog(raw: str) -> list[ModelOption]:
    """Parse ``id:limit,id:limit`` into model options.

    A missing or empty limit means unlimited.
    """
    options: list[ModelOption] = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        model_id, _, limit = entry.partition(":")
        limit = limit.strip()
        options.append(
            ModelOption(
                id=model_id.strip(),
                daily_limit=int(limit) if limit else None,
            )
        )
    return options


class AgentConfig(BaseModel):
    """Configuration for the model calls.

    Supports OpenAI and any OpenAI-compatible API via LLM_BASE_URL.

    Attributes:
        api_key: API key for model access.
        base_url: API base URL (None for OpenAI default).
        model_name: Default model identifier.
        models: Selectable models with their daily limits.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_tokens: Maximum tokens in generated response.
        num_history_messages: Prior user/assistant messages sent with a question.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", "")),
        validate_default=True,
        description="API key for LLM provider",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        description="API base URL (None for OpenAI default)",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", DEFAULT_MODEL),
        description="Default model",
    )
    models: list[ModelOption] = Field(
        default_factory=lambda: parse_model_catalog(os.getenv("LLM_MODELS", "")) or _default_models(),
        description="Selectable models",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_tokens: int = Field(
        default=1024,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    num_history_messages: int = Field(
        default=20,
        ge=0,
        description="Prior messages included with each question",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )
        return v.strip()

    @field_validator("models", mode="before")
    @classmethod
    def parse_models(cls, v: object) -> object:
        """Accept the ``id:limit,id:limit`` environment format."""
        if isinstance(v, str):
            return parse_model_catalog(v)
        return v

    @model_validator(mode="after")
    def include_default_model(self) -> "AgentConfig":
        """Make sure the default model is always selectable."""
        if not any(option.id == self.model_name for option in self.models):
            self.models = [ModelOption(id=self.model_name), *self.models]
        return self

    def get_model(self, model_id: str | None) -> ModelOption:
        """Look up a model option, falling back to the default model.

        Raises:
            UnknownModelError: If the id is not in the catalog.
        """
        wanted = model_id or self.model_name
        for option in self.models:
            if option.id == wanted:
                return option
        raise UnknownModelError(f"Unknown model: {wanted}")


def get_agent_config() -> AgentConfig:
    """Create agent configuration from environment.

    Returns:
        Configured AgentConfig instance.

    Raises:
        ValueError: If no API key is set.
    """
    return AgentConfig()
