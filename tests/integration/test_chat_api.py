"""Integration tests for chat REST API endpoints."""

import pytest
from fastapi.testclient import TestClient

from dumai_chat.chat.personality import PERSONALITIES
from dumai_chat.core.errors import InvalidCredentialError, UpstreamUnavailableError
from dumai_chat.db import ChatSessionRepository, Database
from dumai_chat.llm.base import BaseReplyGenerator
from dumai_chat.main import create_app


class StubReplyGenerator(BaseReplyGenerator):
    """Reply generator with a canned reply or error."""

    def __init__(self) -> None:
        self.error: Exception | None = None

    async def generate_reply(self, text, is_initial=False, personality=None):
        if self.error is not None:
            raise self.error
        if is_initial:
            return "Welcome! I am DumAI."
        return f"Wrong answer to: {text}"


@pytest.fixture
def database():
    """Create an isolated in-memory database for testing."""
    db = Database("sqlite://")
    yield db
    db.dispose()


@pytest.fixture
def generator():
    return StubReplyGenerator()


@pytest.fixture
def client(database, generator):
    """Create a test client with a temporary database and stub generator."""
    app = create_app(
        database=database,
        reply_generator=generator,
        personality_picker=lambda options: options[0],
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user_id(client):
    response = client.post("/api/users", json={"username": "alice"})
    return response.json()["user"]["id"]


class TestUsers:
    """Tests for /api/users."""

    def test_create_user(self, client):
        """Should register a user and return id and username."""
        response = client.post("/api/users", json={"username": "alice"})
        assert response.status_code == 200

        user = response.json()["user"]
        assert user["username"] == "alice"
        assert isinstance(user["id"], int)
        assert "password" not in user

    def test_create_user_is_idempotent(self, client):
        """Should return the same id for the same username."""
        first = client.post("/api/users", json={"username": "alice"}).json()
        second = client.post("/api/users", json={"username": "alice"}).json()
        assert first["user"]["id"] == second["user"]["id"]

    def test_username_is_stripped(self, client):
        """Should ignore surrounding whitespace in usernames."""
        first = client.post("/api/users", json={"username": "alice"}).json()
        second = client.post("/api/users", json={"username": "  alice "}).json()
        assert first["user"]["id"] == second["user"]["id"]

    @pytest.mark.parametrize("body", [{}, {"username": ""}, {"username": "   "}])
    def test_invalid_username_returns_400(self, client, body):
        """Should reject missing or blank usernames."""
        response = client.post("/api/users", json=body)
        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Invalid request body"
        assert data["errors"]

    def test_get_user(self, client, user_id):
        """Should return a registered user."""
        response = client.get(f"/api/users/{user_id}")
        assert response.status_code == 200
        assert response.json()["user"] == {"id": user_id, "username": "alice"}

    def test_get_unknown_user_returns_404(self, client):
        """Should return 404 for an unknown user."""
        response = client.get("/api/users/999")
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestChat:
    """Tests for POST /api/chat."""

    def test_initial_handshake(self, client, user_id):
        """Should return a welcome reply and a new session id."""
        response = client.post("/api/chat", json={"initial": True, "userId": user_id})
        assert response.status_code == 200

        data = response.json()
        assert data["message"] == "Welcome! I am DumAI."
        assert data["sessionId"]
        assert data["language"] == "unknown"

    def test_session_id_is_reused(self, client, user_id):
        """Should keep the conversation in the session the client sends back."""
        first = client.post("/api/chat", json={"initial": True, "userId": user_id}).json()
        second = client.post(
            "/api/chat",
            json={"message": "Is water dry?", "sessionId": first["sessionId"]},
        ).json()

        assert second["sessionId"] == first["sessionId"]
        assert second["message"] == "Wrong answer to: Is water dry?"
        assert second["language"] == "en"

    def test_anonymous_chat(self, client):
        """Should answer without any identity."""
        response = client.post("/api/chat", json={"message": "Hello"})
        assert response.status_code == 200
        assert response.json()["sessionId"]

    def test_username_creates_user(self, client):
        """Should register the username on first contact."""
        client.post("/api/chat", json={"message": "Hello", "username": "carol"})

        created = client.post("/api/users", json={"username": "carol"}).json()
        sessions = client.get(f"/api/users/{created['user']['id']}/sessions").json()
        assert len(sessions["sessions"]) == 1

    def test_overlong_username_returns_400(self, client):
        """Should apply the registration length limit to chat usernames."""
        response = client.post("/api/chat", json={"message": "Hi", "username": "x" * 1000})
        assert response.status_code == 400

        assert client.get("/api/messages").json()["messages"] == []

    def test_blank_username_is_anonymous(self, client):
        """Should treat a blank username as no identity."""
        response = client.post("/api/chat", json={"message": "Hi", "username": "   "})
        assert response.status_code == 200

        session_id = response.json()["sessionId"]
        assert client.get(f"/api/sessions/{session_id}/messages").status_code == 404

    @pytest.mark.parametrize(
        "body",
        [{"message": 5}, {"initial": "maybe"}, {"userId": "abc"}],
    )
    def test_invalid_body_returns_400(self, client, body):
        """Should reject malformed turn requests."""
        response = client.post("/api/chat", json=body)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request body"

    @pytest.mark.parametrize(
        "error", [UpstreamUnavailableError(), InvalidCredentialError()]
    )
    def test_reply_failure_returns_502(self, client, generator, user_id, error):
        """Should surface reply failures without storing messages."""
        first = client.post("/api/chat", json={"initial": True, "userId": user_id}).json()
        generator.error = error

        response = client.post(
            "/api/chat", json={"message": "Hi", "sessionId": first["sessionId"]}
        )
        assert response.status_code == 502
        assert response.json()["message"] == error.message

        messages = client.get(f"/api/sessions/{first['sessionId']}/messages").json()
        assert len(messages["messages"]) == 1


class TestSessions:
    """Tests for session and message listings."""

    def test_list_sessions(self, client, user_id, database):
        """Should list sessions with derived titles, most recent first."""
        first = client.post(
            "/api/chat", json={"message": "First question? yes", "userId": user_id}
        ).json()
        second = client.post(
            "/api/chat", json={"message": "Second one", "userId": user_id}
        ).json()

        response = client.get(f"/api/users/{user_id}/sessions")
        assert response.status_code == 200

        sessions = response.json()["sessions"]
        assert [s["id"] for s in sessions] == [second["sessionId"], first["sessionId"]]
        assert sessions[1]["title"] == "First question?"
        assert set(sessions[0]) == {"id", "title", "createdAt", "updatedAt"}

        with database.session() as db_session:
            stored = ChatSessionRepository(db_session).get(first["sessionId"])
            assert stored.personality == PERSONALITIES[0]

    def test_list_sessions_unknown_user_returns_404(self, client):
        """Should return 404 for an unknown user."""
        response = client.get("/api/users/999/sessions")
        assert response.status_code == 404

    def test_list_session_messages(self, client, user_id):
        """Should return messages in chronological order."""
        turn = client.post("/api/chat", json={"message": "Hi", "userId": user_id}).json()

        response = client.get(f"/api/sessions/{turn['sessionId']}/messages")
        assert response.status_code == 200

        messages = response.json()["messages"]
        assert [(m["role"], m["content"]) for m in messages] == [
            ("user", "Hi"),
            ("assistant", "Wrong answer to: Hi"),
        ]
        assert set(messages[0]) == {
            "id",
            "sessionId",
            "role",
            "content",
            "timestamp",
            "language",
        }
        assert all(m["sessionId"] == turn["sessionId"] for m in messages)

    def test_list_messages_unknown_session_returns_404(self, client):
        """Should return 404 for an unknown session."""
        response = client.get("/api/sessions/nonexistent-id/messages")
        assert response.status_code == 404
        assert response.json()["message"] == "Session not found"

    def test_global_message_log(self, client, user_id):
        """Should list every message, including anonymous ones, by id."""
        client.post("/api/chat", json={"message": "One", "userId": user_id})
        client.post("/api/chat", json={"message": "Two"})

        messages = client.get("/api/messages").json()["messages"]
        assert [m["content"] for m in messages] == [
            "One",
            "Wrong answer to: One",
            "Two",
            "Wrong answer to: Two",
        ]
