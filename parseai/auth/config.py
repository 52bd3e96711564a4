"""Identity provider configuration."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class AuthConfig(BaseModel):
    """Configuration for the Firebase Authentication REST API.

    Attributes:
        api_key: Web API key of the Firebase project.
        base_url: Identity Toolkit endpoint.
        timeout: Request timeout in seconds.
    """

    api_key: str = Field(default_factory=lambda: os.getenv("FIREBASE_API_KEY", ""))
    base_url: str = Field(
        default_factory=lambda: os.getenv(
            "FIREBASE_AUTH_URL", "https://identitytoolkit.googleapis.com/v1"
        )
    )
    timeout: float = Field(default=10.0, gt=0)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key.strip())


def get_auth_config() -> AuthConfig:
    return AuthConfig()
