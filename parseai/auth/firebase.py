"""Email/password accounts through the Firebase Authentication REST API.

Passwords never touch our storage: sign-up, sign-in and token lookup are
forwarded to the identity provider, and the returned ID token is what the
API and the UI use to identify a user.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, EmailStr, Field, field_validator

from parseai.auth.config import AuthConfig, get_auth_config

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# Provider error codes -> messages shown to the user
_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "An account with this email already exists.",
    "EMAIL_NOT_FOUND": "Invalid credentials. Please check your email and password.",
    "INVALID_PASSWORD": "Invalid credentials. Please check your email and password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid credentials. Please check your email and password.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "INVALID_ID_TOKEN": "Your session has expired. Please sign in again.",
    "TOKEN_EXPIRED": "Your session has expired. Please sign in again.",
    "USER_NOT_FOUND": "Your session has expired. Please sign in again.",
    "WEAK_PASSWORD": f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
}


class AuthError(Exception):
    """Raised when the identity provider rejects a request."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or _ERROR_MESSAGES.get(code, "An unexpected error occurred.")
        super().__init__(self.message)


class SignupForm(BaseModel):
    first_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str

    @field_validator("first_name", mode="before")
    @classmethod
    def strip_first_name(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return v


class LoginForm(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError("Password is required.")
        return v


class AuthUser(BaseModel):
    uid: str
    email: str
    display_name: str | None = None


class AuthSession(BaseModel):
    """A signed-in user with their provider tokens."""

    user: AuthUser
    id_token: str
    refresh_token: str
    expires_in: int


class FirebaseAuthClient:
    """Async client for the Identity Toolkit ``accounts:*`` endpoints."""

    def __init__(
        self,
        config: AuthConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Provider configuration; loads from environment if not provided.
            transport: Optional httpx transport, used by tests.
        """
        self._config = config or get_auth_config()
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    async def _call(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        if not self._config.enabled:
            raise AuthError("CONFIGURATION_NOT_FOUND", "Sign-in is not configured on this server.")

        url = f"{self._config.base_url.rstrip('/')}/accounts:{action}"
        async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, params={"key": self._config.api_key}, json=payload)
            except httpx.RequestError as e:
                logger.error(f"Identity provider unreachable: {e}")
                raise AuthError("NETWORK_ERROR", "Could not reach the sign-in service.") from e

        if response.status_code >= 400:
            code = _error_code(response)
            logger.info(f"accounts:{action} rejected: {code}")
            raise AuthError(code)

        return response.json()

    async def sign_up(self, form: SignupForm) -> AuthSession:
        """Create an account and set its display name to the first name."""
        data = await self._call(
            "signUp",
            {"email": form.email, "password": form.password, "returnSecureToken": True},
        )
        await self._call(
            "update",
            {"idToken": data["idToken"], "displayName": form.first_name, "returnSecureToken": False},
        )
        logger.info(f"Created account {data['localId']}")
        return _session_from(data, display_name=form.first_name)

    async def sign_in(self, form: LoginForm) -> AuthSession:
        data = await self._call(
            "signInWithPassword",
            {"email": form.email, "password": form.password, "returnSecureToken": True},
        )
        return _session_from(data, display_name=data.get("displayName") or None)

    async def lookup(self, id_token: str) -> AuthUser:
        """Resolve an ID token to its user.

        Raises:
            AuthError: If the token is invalid or expired.
        """
        data = await self._call("lookup", {"idToken": id_token})
        users = data.get("users") or []
        if not users:
            raise AuthError("USER_NOT_FOUND")
        user = users[0]
        return AuthUser(
            uid=user["localId"],
            email=user.get("email", ""),
            display_name=user.get("displayName") or None,
        )


def _error_code(response: httpx.Response) -> str:
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP_{response.status_code}"
    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    return str(message).split(":")[0].strip()


def _session_from(data: dict[str, Any], display_name: str | None) -> AuthSession:
    return AuthSession(
        user=AuthUser(uid=data["localId"], email=data.get("email", ""), display_name=display_name),
        id_token=data["idToken"],
        refresh_token=data.get("refreshToken", ""),
        expires_in=int(data.get("expiresIn", 3600)),
    )


# Module-level singleton instance
_auth_client: FirebaseAuthClient | None = None


def get_auth_client() -> FirebaseAuthClient:
    """Get or create the global identity provider client."""
    global _auth_client
    if _auth_client is None:
        _auth_client = FirebaseAuthClient()
    return _auth_client
