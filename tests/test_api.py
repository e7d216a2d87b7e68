from fastapi.testclient import TestClient

from src.ai_chat.completion import CompletionService
from src.ai_chat.config import Config
from src.ai_chat.errors import UpstreamError
from src.server.app import create_app, get_chat_history_repository


class FakeCompletionClient:
    def __init__(self, reply="Hi there", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def chat(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.reply


class FakeTTSClient:
    def __init__(self, audio="QUJD"):
        self.audio = audio
        self.calls = []

    def synthesize(self, text):
        self.calls.append(text)
        return self.audio


def create_test_client(tmp_path, monkeypatch) -> TestClient:
    db_path = tmp_path / "api_chat.db"
    monkeypatch.setenv("AI_CHAT_DB_PATH", str(db_path))
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("MURF_API_KEY", raising=False)
    get_chat_history_repository.cache_clear()
    app = create_app()
    return TestClient(app)


def use_completion_client(monkeypatch, client):
    monkeypatch.setattr(
        "src.server.routes.chat.build_completion_service",
        lambda credentials: CompletionService(Config(), credentials, client=client),
    )


def test_health(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)

    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_session_crud_flow(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)

    resp = client.get("/api/chat-sessions")
    assert resp.status_code == 200
    assert resp.json() == []

    resp = client.post("/api/chat-sessions", json={"title": "Hello"})
    assert resp.status_code == 200
    session = resp.json()
    assert session["title"] == "Hello"
    assert "createdAt" in session
    session_id = session["id"]

    resp = client.get(f"/api/chat-sessions/{session_id}")
    assert resp.status_code == 200
    assert resp.json()["id"] == session_id

    resp = client.delete(f"/api/chat-sessions/{session_id}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    resp = client.get(f"/api/chat-sessions/{session_id}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Chat session not found"}

    resp = client.delete(f"/api/chat-sessions/{session_id}")
    assert resp.status_code == 404


def test_messages_are_numbered_in_order(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    session_id = client.post("/api/chat-sessions", json={"title": "Hello"}).json()["id"]

    resp = client.post(
        f"/api/chat-sessions/{session_id}/messages",
        json={
            "messages": [
                {"role": "user", "content": "Hello"},
                {"role": "assistant", "content": "Hi there"},
            ]
        },
    )
    assert resp.status_code == 200
    created = resp.json()
    assert [m["role"] for m in created] == ["user", "assistant"]
    assert created[0]["id"] < created[1]["id"]
    assert created[0]["chatSessionId"] == session_id
    assert created[0]["audioBase64"] is None

    resp = client.get(f"/api/chat-sessions/{session_id}/messages")
    assert resp.status_code == 200
    assert [m["content"] for m in resp.json()] == ["Hello", "Hi there"]


def test_delete_session_removes_messages(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    session_id = client.post("/api/chat-sessions", json={"title": "Bye"}).json()["id"]
    client.post(
        f"/api/chat-sessions/{session_id}/messages",
        json={
            "messages": [
                {"role": "user", "content": "Bye"},
                {"role": "assistant", "content": "See you"},
                {"role": "user", "content": "Really"},
                {"role": "assistant", "content": "Really"},
            ]
        },
    )
    assert len(client.get(f"/api/chat-sessions/{session_id}/messages").json()) == 4

    client.delete(f"/api/chat-sessions/{session_id}")

    resp = client.get(f"/api/chat-sessions/{session_id}/messages")
    assert resp.status_code == 200
    assert resp.json() == []
    assert session_id not in [s["id"] for s in client.get("/api/chat-sessions").json()]


def test_validation_errors(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)

    resp = client.post("/api/chat-sessions", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request data"
    assert resp.json()["details"]

    resp = client.post("/api/chat-sessions", json={"title": ""})
    assert resp.status_code == 400

    session_id = client.post("/api/chat-sessions", json={"title": "x"}).json()["id"]
    resp = client.post(f"/api/chat-sessions/{session_id}/messages", json={"messages": "nope"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Messages must be an array"}

    resp = client.post(
        f"/api/chat-sessions/{session_id}/messages",
        json={"messages": [{"role": "robot", "content": "beep"}]},
    )
    assert resp.status_code == 400
    assert client.get(f"/api/chat-sessions/{session_id}/messages").json() == []

    resp = client.post(
        "/api/chat-sessions/missing/messages",
        json={"messages": [{"role": "user", "content": "hi"}]},
    )
    assert resp.status_code == 404


def test_chat_completion(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    fake = FakeCompletionClient(reply="Hi there")
    use_completion_client(monkeypatch, fake)

    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hello"}]})

    assert resp.status_code == 200
    assert resp.json() == {"message": "Hi there"}
    assert fake.calls[0][-1] == {"role": "user", "content": "Hello"}


def test_chat_completion_invalid_messages(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    fake = FakeCompletionClient()
    use_completion_client(monkeypatch, fake)

    resp = client.post("/api/chat", json={"messages": []})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Messages array is required"}

    resp = client.post("/api/chat", json={"messages": [{"role": "robot", "content": "hi"}]})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid message format or role"}
    assert fake.calls == []


def test_chat_completion_upstream_error(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    use_completion_client(
        monkeypatch, FakeCompletionClient(error=UpstreamError("Rate limited", 429))
    )

    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hello"}]})

    assert resp.status_code == 429
    assert resp.json() == {"error": "Rate limited"}


def test_chat_completion_without_api_key(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    monkeypatch.setattr(
        "src.server.routes.chat.build_completion_service",
        lambda credentials: CompletionService(Config(), credentials),
    )

    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hello"}]})

    assert resp.status_code == 500
    assert "OpenRouter API key not configured" in resp.json()["error"]


def test_tts_stores_audio_on_message(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    fake = FakeTTSClient(audio="QUJD")
    monkeypatch.setattr("src.server.routes.tts.build_tts_client", lambda credentials: fake)

    session_id = client.post("/api/chat-sessions", json={"title": "Hello"}).json()["id"]
    message = client.post(
        f"/api/chat-sessions/{session_id}/messages",
        json={"messages": [{"role": "assistant", "content": "Hi there"}]},
    ).json()[0]

    resp = client.post("/api/tts", json={"text": "Hi there", "messageId": message["id"]})

    assert resp.status_code == 200
    assert resp.json() == {"audioBase64": "QUJD"}
    assert fake.calls == ["Hi there"]
    stored = client.get(f"/api/chat-sessions/{session_id}/messages").json()[0]
    assert stored["audioBase64"] == "QUJD"


def test_tts_validation_and_missing_key(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)

    resp = client.post("/api/tts", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Text is required"}

    resp = client.post("/api/tts", json={"text": "Hello"})
    assert resp.status_code == 500
    assert "Murf API key not configured" in resp.json()["error"]


def test_settings_flow(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)

    resp = client.get("/api/settings")
    assert resp.status_code == 200
    assert resp.json() == {"hasOpenrouterKey": False, "hasMurfKey": False}

    resp = client.post("/api/settings", json={"openrouterApiKey": "sk-or"})
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "settings": {"hasOpenrouterKey": True, "hasMurfKey": False},
    }

    resp = client.post("/api/settings", json={"murfApiKey": "murf"})
    assert resp.json()["settings"] == {"hasOpenrouterKey": True, "hasMurfKey": True}

    resp = client.post("/api/settings", json={"openrouterApiKey": ""})
    assert resp.json()["settings"] == {"hasOpenrouterKey": False, "hasMurfKey": True}


def test_tts_message_id_zero_is_not_stored(tmp_path, monkeypatch):
    client = create_test_client(tmp_path, monkeypatch)
    monkeypatch.setattr("src.server.routes.tts.build_tts_client", lambda credentials: FakeTTSClient())
    stored = []
    repo = get_chat_history_repository()
    monkeypatch.setattr(repo, "set_message_audio", lambda *args: stored.append(args) or True)

    resp = client.post("/api/tts", json={"text": "Hello", "messageId": 0})

    assert resp.status_code == 200
    assert resp.json() == {"audioBase64": "QUJD"}
    assert stored == []
