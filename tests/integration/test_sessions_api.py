"""Integration tests for the session endpoints.

Runs the real FastAPI app with the model, identity provider and remote
store swapped for in-memory doubles.
"""

from unittest.mock import MagicMock

import pytest_check as check
from httpx import AsyncClient

from parseai.models.chat import ChatSession
from parseai.models.schemas import ModelInfo, SessionList
from parseai.parsing.documents import DocumentParseError
from tests.conftest import AUTH_HEADERS


class TestHealth:
    async def test_health_check(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        check.equal(response.status_code, 200)
        check.equal(response.json(), {"status": "healthy", "service": "parseai"})


class TestAuthentication:
    """Session routes require a valid bearer token."""

    async def test_missing_token(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/sessions")

        check.equal(response.status_code, 401)
        check.equal(response.json()["detail"], "Sign in to access your chat history")

    async def test_invalid_token(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/sessions", headers={"Authorization": "Bearer forged"})

        check.equal(response.status_code, 401)
        check.equal(response.json()["detail"], "Your session has expired. Please sign in again.")


class TestSessionLifecycle:
    """Tests for listing, creating, renaming and deleting sessions."""

    async def test_first_listing_creates_session(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/sessions", headers=AUTH_HEADERS)

        assert response.status_code == 200
        data = SessionList.model_validate(response.json())
        check.equal(len(data.sessions), 1)
        check.equal(data.sessions[0].title, "New Chat")
        check.is_true(data.sessions[0].active)
        check.equal(data.model, "gpt-4o-mini")

    async def test_create_and_activate(self, async_client: AsyncClient) -> None:
        listing = SessionList.model_validate((await async_client.get("/sessions", headers=AUTH_HEADERS)).json())
        first_id = listing.sessions[0].id

        created = await async_client.post("/sessions", headers=AUTH_HEADERS)
        check.equal(created.status_code, 201)
        new_id = ChatSession.model_validate(created.json()).id

        listing = SessionList.model_validate((await async_client.get("/sessions", headers=AUTH_HEADERS)).json())
        check.equal([s.id for s in listing.sessions], [new_id, first_id])
        check.equal(listing.active_session_id, new_id)

        activated = await async_client.post(f"/sessions/{first_id}/activate", headers=AUTH_HEADERS)
        check.equal(activated.status_code, 200)
        listing = SessionList.model_validate((await async_client.get("/sessions", headers=AUTH_HEADERS)).json())
        check.equal(listing.active_session_id, first_id)

    async def test_rename(self, async_client: AsyncClient) -> None:
        created = (await async_client.post("/sessions", headers=AUTH_HEADERS)).json()

        response = await async_client.patch(
            f"/sessions/{created['id']}", json={"title": "Tax questions"}, headers=AUTH_HEADERS
        )

        check.equal(response.status_code, 200)
        check.equal(response.json()["title"], "Tax questions")

    async def test_rename_empty_title_rejected(self, async_client: AsyncClient) -> None:
        created = (await async_client.post("/sessions", headers=AUTH_HEADERS)).json()

        response = await async_client.patch(f"/sessions/{created['id']}", json={"title": ""}, headers=AUTH_HEADERS)

        assert response.status_code == 422

    async def test_delete_last_session_leaves_fresh_one(self, async_client: AsyncClient) -> None:
        listing = SessionList.model_validate((await async_client.get("/sessions", headers=AUTH_HEADERS)).json())
        only_id = listing.sessions[0].id

        response = await async_client.delete(f"/sessions/{only_id}", headers=AUTH_HEADERS)

        assert response.status_code == 200
        data = SessionList.model_validate(response.json())
        check.equal(len(data.sessions), 1)
        check.not_equal(data.sessions[0].id, only_id)
        check.equal(data.active_session_id, data.sessions[0].id)

    async def test_unknown_session_is_404(self, async_client: AsyncClient) -> None:
        for method, path in [
            ("GET", "/sessions/session_missing"),
            ("DELETE", "/sessions/session_missing"),
            ("POST", "/sessions/session_missing/clear"),
            ("POST", "/sessions/session_missing/activate"),
        ]:
            response = await async_client.request(method, path, headers=AUTH_HEADERS)
            check.equal(response.status_code, 404, f"{method} {path}")


class TestModelSelection:
    async def test_select_model(self, async_client: AsyncClient) -> None:
        response = await async_client.put("/sessions/model", json={"model": "gpt-4o"}, headers=AUTH_HEADERS)

        assert response.status_code == 200
        info = ModelInfo.model_validate(response.json())
        check.equal(info.id, "gpt-4o")
        check.equal(info.remaining, 1)

        listing = await async_client.get("/sessions", headers=AUTH_HEADERS)
        check.equal(listing.json()["model"], "gpt-4o")

    async def test_unknown_model(self, async_client: AsyncClient) -> None:
        response = await async_client.put("/sessions/model", json={"model": "nope"}, headers=AUTH_HEADERS)

        check.equal(response.status_code, 400)
        check.is_in("Unknown model", response.json()["detail"])


class TestDocumentsAndQuestions:
    """Tests for uploading documents and asking questions."""

    async def _session_id(self, async_client: AsyncClient) -> str:
        listing = await async_client.get("/sessions", headers=AUTH_HEADERS)
        return listing.json()["active_session_id"]

    async def test_upload_document(self, async_client: AsyncClient, fake_assistant: MagicMock) -> None:
        session_id = await self._session_id(async_client)

        response = await async_client.post(
            f"/sessions/{session_id}/document",
            files={"file": ("report.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        session = ChatSession.model_validate(response.json())
        check.equal(session.document.name, "report.pdf")
        check.equal(session.title, "report.pdf")
        check.is_in("Successfully parsed", session.messages[-1].content)
        fake_assistant.parse_document.assert_awaited_once()

    async def test_upload_unsupported_type(self, async_client: AsyncClient) -> None:
        session_id = await self._session_id(async_client)

        response = await async_client.post(
            f"/sessions/{session_id}/document",
            files={"file": ("archive.zip", b"PK", "application/zip")},
            headers=AUTH_HEADERS,
        )

        check.equal(response.status_code, 400)
        check.is_in("Unsupported file type", response.json()["detail"])

    async def test_upload_empty_file(self, async_client: AsyncClient) -> None:
        session_id = await self._session_id(async_client)

        response = await async_client.post(
            f"/sessions/{session_id}/document",
            files={"file": ("empty.txt", b"", "text/plain")},
            headers=AUTH_HEADERS,
        )

        check.equal(response.status_code, 400)
        check.equal(response.json()["detail"], "Empty file provided")

    async def test_upload_parse_failure(self, async_client: AsyncClient, fake_assistant: MagicMock) -> None:
        session_id = await self._session_id(async_client)
        fake_assistant.parse_document.side_effect = DocumentParseError("no text")

        response = await async_client.post(
            f"/sessions/{session_id}/document",
            files={"file": ("scan.pdf", b"%PDF", "application/pdf")},
            headers=AUTH_HEADERS,
        )

        check.equal(response.status_code, 422)
        stored = (await async_client.get(f"/sessions/{session_id}", headers=AUTH_HEADERS)).json()
        check.is_in("couldn't read that document", stored["messages"][-1]["content"])

    async def test_remove_document(self, async_client: AsyncClient) -> None:
        session_id = await self._session_id(async_client)
        await async_client.post(
            f"/sessions/{session_id}/document",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=AUTH_HEADERS,
        )

        response = await async_client.delete(f"/sessions/{session_id}/document", headers=AUTH_HEADERS)

        check.equal(response.status_code, 200)
        check.is_none(response.json()["document"])

    async def test_ask_question(self, async_client: AsyncClient, fake_assistant: MagicMock) -> None:
        session_id = await self._session_id(async_client)

        response = await async_client.post(
            f"/sessions/{session_id}/messages",
            json={"question": "How did revenue change?"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        session = ChatSession.model_validate(response.json())
        check.equal(session.messages[-2].content, "How did revenue change?")
        check.equal(session.messages[-1].content, "Revenue grew 12%.")
        check.equal(session.title, "Quarterly Revenue Growth")

        models = (await async_client.get("/models", headers=AUTH_HEADERS)).json()["models"]
        used = {m["id"]: m["used"] for m in models}
        check.equal(used["gpt-4o-mini"], 1)

    async def test_ask_empty_question(self, async_client: AsyncClient) -> None:
        session_id = await self._session_id(async_client)

        response = await async_client.post(
            f"/sessions/{session_id}/messages", json={"question": "   "}, headers=AUTH_HEADERS
        )

        assert response.status_code == 422

    async def test_ask_unknown_model(self, async_client: AsyncClient) -> None:
        session_id = await self._session_id(async_client)

        response = await async_client.post(
            f"/sessions/{session_id}/messages",
            json={"question": "Hi", "model": "nope"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 400

    async def test_clear_session(self, async_client: AsyncClient) -> None:
        session_id = await self._session_id(async_client)
        await async_client.post(f"/sessions/{session_id}/messages", json={"question": "Hi"}, headers=AUTH_HEADERS)

        response = await async_client.post(f"/sessions/{session_id}/clear", headers=AUTH_HEADERS)

        check.equal(response.status_code, 200)
        check.equal([m["id"] for m in response.json()["messages"]], ["init"])
