"""Unit tests for the identity provider client and the account forms.

Requests go to an httpx.MockTransport that plays the Identity Toolkit API.
"""

import json

import httpx
import pytest
import pytest_check as check
from pydantic import ValidationError

from parseai.auth.config import AuthConfig
from parseai.auth.firebase import AuthError, FirebaseAuthClient, LoginForm, SignupForm

CONFIG = AuthConfig(api_key="web-key", base_url="https://auth.test/v1")


def _error(message: str) -> httpx.Response:
    return httpx.Response(400, json={"error": {"code": 400, "message": message}})


class FakeIdentityToolkit:
    """Records requests and answers them like the provider would."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        action = request.url.path.rsplit(":", 1)[-1]
        payload = json.loads(request.content)
        self.requests.append((action, payload))
        assert request.url.params["key"] == "web-key"

        if action == "signUp":
            if payload["email"] == "taken@example.com":
                return _error("EMAIL_EXISTS")
            return httpx.Response(
                200,
                json={
                    "localId": "uid-1",
                    "email": payload["email"],
                    "idToken": "id-token",
                    "refreshToken": "refresh-token",
                    "expiresIn": "3600",
                },
            )
        if action == "update":
            return httpx.Response(200, json={"localId": "uid-1", "displayName": payload["displayName"]})
        if action == "signInWithPassword":
            if payload["password"] != "correct-horse":
                return _error("INVALID_LOGIN_CREDENTIALS")
            return httpx.Response(
                200,
                json={
                    "localId": "uid-1",
                    "email": payload["email"],
                    "displayName": "Ada",
                    "idToken": "id-token",
                    "refreshToken": "refresh-token",
                    "expiresIn": "3600",
                },
            )
        if action == "lookup":
            if payload["idToken"] == "expired":
                return _error("INVALID_ID_TOKEN")
            if payload["idToken"] == "orphan":
                return httpx.Response(200, json={"users": []})
            return httpx.Response(
                200,
                json={"users": [{"localId": "uid-1", "email": "ada@example.com", "displayName": "Ada"}]},
            )
        return httpx.Response(404)


@pytest.fixture
def toolkit() -> FakeIdentityToolkit:
    return FakeIdentityToolkit()


@pytest.fixture
def client(toolkit: FakeIdentityToolkit) -> FirebaseAuthClient:
    return FirebaseAuthClient(config=CONFIG, transport=httpx.MockTransport(toolkit))


class TestFirebaseAuthClient:
    """Tests for sign-up, sign-in and token lookup."""

    async def test_sign_up_sets_display_name(self, client: FirebaseAuthClient, toolkit: FakeIdentityToolkit) -> None:
        form = SignupForm(first_name=" Ada ", email="ada@example.com", password="correct-horse")

        session = await client.sign_up(form)

        check.equal([action for action, _ in toolkit.requests], ["signUp", "update"])
        check.equal(toolkit.requests[1][1]["displayName"], "Ada")
        check.equal(toolkit.requests[1][1]["idToken"], "id-token")
        check.equal(session.user.uid, "uid-1")
        check.equal(session.user.display_name, "Ada")
        check.equal(session.id_token, "id-token")
        check.equal(session.expires_in, 3600)

    async def test_sign_up_existing_email(self, client: FirebaseAuthClient) -> None:
        form = SignupForm(first_name="Ada", email="taken@example.com", password="correct-horse")

        with pytest.raises(AuthError) as exc_info:
            await client.sign_up(form)

        check.equal(exc_info.value.code, "EMAIL_EXISTS")
        check.equal(exc_info.value.message, "An account with this email already exists.")

    async def test_sign_in(self, client: FirebaseAuthClient) -> None:
        session = await client.sign_in(LoginForm(email="ada@example.com", password="correct-horse"))

        check.equal(session.user.email, "ada@example.com")
        check.equal(session.user.display_name, "Ada")
        check.equal(session.refresh_token, "refresh-token")

    async def test_sign_in_wrong_password(self, client: FirebaseAuthClient) -> None:
        with pytest.raises(AuthError) as exc_info:
            await client.sign_in(LoginForm(email="ada@example.com", password="wrong-pass"))

        assert "Invalid credentials" in exc_info.value.message

    async def test_lookup(self, client: FirebaseAuthClient) -> None:
        user = await client.lookup("id-token")

        check.equal(user.uid, "uid-1")
        check.equal(user.display_name, "Ada")

    @pytest.mark.parametrize(("token", "code"), [("expired", "INVALID_ID_TOKEN"), ("orphan", "USER_NOT_FOUND")])
    async def test_lookup_rejects_bad_tokens(self, client: FirebaseAuthClient, token: str, code: str) -> None:
        with pytest.raises(AuthError) as exc_info:
            await client.lookup(token)

        check.equal(exc_info.value.code, code)
        check.equal(exc_info.value.message, "Your session has expired. Please sign in again.")

    async def test_error_code_drops_detail(self) -> None:
        transport = httpx.MockTransport(lambda _: _error("WEAK_PASSWORD : Password should be at least 6 characters"))
        client = FirebaseAuthClient(config=CONFIG, transport=transport)

        with pytest.raises(AuthError) as exc_info:
            await client.sign_in(LoginForm(email="ada@example.com", password="123456"))

        assert exc_info.value.code == "WEAK_PASSWORD"

    async def test_non_json_error(self) -> None:
        transport = httpx.MockTransport(lambda _: httpx.Response(502, text="Bad gateway"))
        client = FirebaseAuthClient(config=CONFIG, transport=transport)

        with pytest.raises(AuthError) as exc_info:
            await client.lookup("id-token")

        check.equal(exc_info.value.code, "HTTP_502")
        check.equal(exc_info.value.message, "An unexpected error occurred.")

    async def test_network_error(self) -> None:
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = FirebaseAuthClient(config=CONFIG, transport=httpx.MockTransport(unreachable))

        with pytest.raises(AuthError) as exc_info:
            await client.lookup("id-token")

        assert exc_info.value.code == "NETWORK_ERROR"

    async def test_disabled_without_api_key(self, toolkit: FakeIdentityToolkit) -> None:
        client = FirebaseAuthClient(config=AuthConfig(api_key=""), transport=httpx.MockTransport(toolkit))

        check.is_false(client.enabled)
        with pytest.raises(AuthError) as exc_info:
            await client.lookup("id-token")

        check.equal(exc_info.value.code, "CONFIGURATION_NOT_FOUND")
        check.equal(toolkit.requests, [])


class TestForms:
    """Tests for sign-up and login form validation."""

    def test_signup_requires_first_name(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SignupForm(first_name="   ", email="ada@example.com", password="123456")

        assert exc_info.value.errors()[0]["loc"] == ("first_name",)

    def test_signup_rejects_invalid_email(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SignupForm(first_name="Ada", email="not-an-email", password="123456")

        assert exc_info.value.errors()[0]["loc"] == ("email",)

    def test_signup_short_password(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SignupForm(first_name="Ada", email="ada@example.com", password="12345")

        assert "Password must be at least 6 characters." in str(exc_info.value)

    def test_login_short_password(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LoginForm(email="ada@example.com", password="")

        assert "Password is required." in str(exc_info.value)
