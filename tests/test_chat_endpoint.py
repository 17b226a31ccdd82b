"""Integration tests for the session, chat and history endpoints."""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from models.conversation import ConversationTurn
from services.google_oauth import GoogleOAuthError, GoogleProfile
from services.llm_client import LLMClientError, LLMError, LLMResponse


@pytest.fixture
def client():
    """Create a test client with mocked services."""
    # Import after path is set
    import main

    # Startup does not run outside a context manager; set the globals directly
    main.llm_client = Mock()
    main.chat_store = Mock()
    main.google_oauth = Mock()
    main.google_oauth.configured = True
    main.google_oauth.authorization_url.return_value = "https://accounts.example/auth"

    main.llm_client.generate.return_value = LLMResponse(
        text="**Paris**",
        tokens_input=10,
        tokens_output=2,
        latency_ms=50,
        model_used="llama-3.1-8b-instant"
    )
    main.chat_store.get_or_create_google_user.return_value = {
        "id": 7, "name": "Ada", "picture": "https://img/ada.png"
    }
    main.chat_store.list_chats.return_value = []

    yield TestClient(main.app)


def login_guest(client, name="Bob"):
    response = client.post("/auth/guest", json={"name": name})
    assert response.status_code == 200
    return response


def login_google(client):
    import main
    main.google_oauth.fetch_profile.return_value = GoogleProfile(
        google_id="g-1", name="Ada", email="ada@example.com"
    )
    response = client.get("/auth/google", follow_redirects=False)
    assert response.status_code == 302
    state = main.google_oauth.authorization_url.call_args.args[0]

    response = client.get(
        "/auth/google/callback",
        params={"code": "abc", "state": state},
        follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/chat.html"
    return response


class TestHealth:

    def test_root(self, client):
        assert client.get("/").json()["status"] == "ok"

    def test_health_reports_llm(self, client):
        assert client.get("/health").json()["llm_configured"] is True


class TestSession:

    def test_anonymous_user(self, client):
        assert client.get("/api/user").json() == {"loggedIn": False}

    def test_guest_login(self, client):
        login_guest(client, "  Bob ")

        data = client.get("/api/user").json()
        assert data["loggedIn"] is True
        assert data["user"]["name"] == "Bob"
        assert data["user"]["type"] == "guest"
        assert data["user"]["id"].startswith("guest_")
        assert "photo" not in data["user"]

    @pytest.mark.parametrize("body", [{"name": ""}, {"name": "   "}, {}])
    def test_guest_login_requires_name(self, client, body):
        response = client.post("/auth/guest", json=body)
        assert response.status_code == 400
        assert client.get("/api/user").json() == {"loggedIn": False}

    def test_google_login(self, client):
        import main
        login_google(client)

        data = client.get("/api/user").json()
        assert data["user"] == {
            "id": 7, "name": "Ada", "type": "google", "photo": "https://img/ada.png"
        }
        main.chat_store.get_or_create_google_user.assert_called_once_with(
            google_id="g-1", name="Ada", email="ada@example.com", picture=""
        )

    def test_google_callback_state_mismatch(self, client):
        import main
        client.get("/auth/google", follow_redirects=False)

        response = client.get(
            "/auth/google/callback",
            params={"code": "abc", "state": "forged"},
            follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/index.html"
        main.google_oauth.fetch_profile.assert_not_called()
        assert client.get("/api/user").json() == {"loggedIn": False}

    def test_google_callback_exchange_failure(self, client):
        import main
        client.get("/auth/google", follow_redirects=False)
        state = main.google_oauth.authorization_url.call_args.args[0]
        main.google_oauth.fetch_profile.side_effect = GoogleOAuthError("invalid_grant")

        response = client.get(
            "/auth/google/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False
        )

        assert response.headers["location"] == "/index.html"
        assert client.get("/api/user").json() == {"loggedIn": False}

    def test_google_login_unconfigured(self, client):
        import main
        main.google_oauth.configured = False
        assert client.get("/auth/google", follow_redirects=False).status_code == 503

    def test_logout_clears_session(self, client):
        login_guest(client)

        response = client.get("/logout", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/index.html"
        assert client.get("/api/user").json() == {"loggedIn": False}


class TestChat:

    def test_requires_session(self, client):
        import main
        response = client.post("/api/chat", json={"question": "Hi"})

        assert response.status_code == 401
        main.llm_client.generate.assert_not_called()

    def test_guest_chat_returns_raw_answer_and_is_not_stored(self, client):
        import main
        login_guest(client)

        response = client.post("/api/chat", json={"question": "  Capital of France? "})

        assert response.status_code == 200
        assert response.json() == {"result": "**Paris**"}
        main.llm_client.generate.assert_called_once_with("Capital of France?")
        main.chat_store.add_turn.assert_not_called()

    def test_google_chat_is_stored(self, client):
        import main
        login_google(client)

        response = client.post("/api/chat", json={"question": "Capital of France?"})

        assert response.status_code == 200
        user_id, turn = main.chat_store.add_turn.call_args.args
        assert user_id == 7
        assert isinstance(turn, ConversationTurn)
        assert turn.question == "Capital of France?"
        assert turn.answer == "**Paris**"

    def test_store_failure_still_returns_answer(self, client):
        import main
        login_google(client)
        main.chat_store.add_turn.side_effect = RuntimeError("db down")

        response = client.post("/api/chat", json={"question": "Hi"})

        assert response.status_code == 200
        assert response.json()["result"] == "**Paris**"

    def test_blank_question(self, client):
        login_guest(client)
        assert client.post("/api/chat", json={"question": "   "}).status_code == 400

    @pytest.mark.parametrize("body", [{}, {"question": ""}])
    def test_invalid_body(self, client, body):
        login_guest(client)
        assert client.post("/api/chat", json=body).status_code == 422

    def test_missing_api_key(self, client):
        import main
        login_guest(client)
        main.llm_client = None

        response = client.post("/api/chat", json={"question": "Hi"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Server API key not configured."

    def test_upstream_failure(self, client):
        import main
        login_google(client)
        main.llm_client.generate.side_effect = LLMClientError(
            LLMError(code="API_ERROR", message="Groq API error: 503", details={})
        )

        response = client.post("/api/chat", json={"question": "Hi"})

        assert response.status_code == 502
        assert response.json()["detail"] == "Upstream AI failed"
        main.chat_store.add_turn.assert_not_called()


class TestHistory:

    def test_requires_session(self, client):
        assert client.get("/api/history").status_code == 401

    def test_guest_history_is_empty(self, client):
        import main
        login_guest(client)

        assert client.get("/api/history").json() == {"history": []}
        main.chat_store.list_chats.assert_not_called()

    def test_google_history(self, client):
        import main
        main.chat_store.list_chats.return_value = [
            {"id": 2, "question": "new", "answer": "b", "created_at": 1700000001000},
            {"id": 1, "question": "old", "answer": "a", "created_at": 1700000000000},
        ]
        login_google(client)

        history = client.get("/api/history").json()["history"]

        assert [item["question"] for item in history] == ["new", "old"]
        assert history[0]["created_at"] == 1700000001000
        main.chat_store.list_chats.assert_called_once_with(7)

    def test_history_failure(self, client):
        import main
        login_google(client)
        main.chat_store.list_chats.side_effect = RuntimeError("Failed to list chats")

        assert client.get("/api/history").status_code == 500

    def test_clear_history(self, client):
        import main
        login_google(client)

        response = client.delete("/api/clear-history")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        main.chat_store.clear_chats.assert_called_once_with(7)

    def test_guest_cannot_clear_server_history(self, client):
        import main
        login_guest(client)

        assert client.delete("/api/clear-history").status_code == 401
        main.chat_store.clear_chats.assert_not_called()

    def test_users_only_see_their_own_history(self, client):
        import main
        login_google(client)
        client.get("/api/history")

        other = TestClient(main.app)
        assert other.get("/api/history").status_code == 401
        main.chat_store.list_chats.assert_called_once_with(7)
