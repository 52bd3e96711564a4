"""Identity provider integration (Firebase Authentication)."""

from parseai.auth.config import AuthConfig, get_auth_config
from parseai.auth.firebase import (
    AuthError,
    AuthSession,
    AuthUser,
    FirebaseAuthClient,
    LoginForm,
    SignupForm,
    get_auth_client,
)

__all__ = [
    "AuthConfig",
    "AuthError",
    "AuthSession",
    "AuthUser",
    "FirebaseAuthClient",
    "LoginForm",
    "SignupForm",
    "get_auth_client",
    "get_auth_config",
]
