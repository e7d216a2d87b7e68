"""Chat History Repository Unit Tests

ChatHistoryRepositoryの単体テスト
"""

import sqlite3

import pytest

from src.ai_chat.errors import NotFoundError, ValidationError
from src.chat_history import ChatHistoryRepository, MessageRole


@pytest.fixture
def test_db_path(tmp_path, monkeypatch):
    """テスト用の一時DBパス"""
    db_path = tmp_path / "test_chat_history.db"
    monkeypatch.setenv("AI_CHAT_DB_PATH", str(db_path))
    return db_path


@pytest.fixture
def repo(test_db_path):
    """ChatHistoryRepositoryのインスタンス"""
    return ChatHistoryRepository(db_path=test_db_path)


def test_db_path_from_env(test_db_path):
    """引数なしの場合は環境変数のパスを使う"""
    repo = ChatHistoryRepository()
    assert repo.db_path == test_db_path
    assert test_db_path.exists()


def test_create_session(repo):
    """セッション作成のテスト"""
    session = repo.create_session("テストセッション")

    assert session.id
    assert session.title == "テストセッション"
    assert session.created_at is not None
    assert repo.list_messages(session.id) == []


def test_create_session_requires_title(repo):
    with pytest.raises(ValidationError):
        repo.create_session("   ")


def test_get_session(repo):
    """セッション取得のテスト"""
    created = repo.create_session("取得テスト")

    session = repo.get_session(created.id)
    assert session == created
    assert repo.get_session("nonexistent") is None


def test_list_sessions_newest_first(repo):
    """セッション一覧は新しい順"""
    first = repo.create_session("first")
    second = repo.create_session("second")
    third = repo.create_session("third")

    ids = [session.id for session in repo.list_sessions()]
    assert ids == [third.id, second.id, first.id]


def test_append_messages_assigns_increasing_ids(repo):
    """採番は入力順・単調増加"""
    session = repo.create_session("Hello")

    created = repo.append_messages(
        session.id,
        [
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi there"},
        ],
    )

    assert [m.role for m in created] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert created[0].id < created[1].id
    assert all(m.chat_session_id == session.id for m in created)

    more = repo.append_messages(session.id, [{"role": "user", "content": "Again"}])
    assert more[0].id > created[1].id

    listed = repo.list_messages(session.id)
    assert [m.content for m in listed] == ["Hello", "Hi there", "Again"]


def test_append_messages_is_atomic(repo):
    """不正なメッセージが1件でもあれば何も保存しない"""
    session = repo.create_session("atomic")

    with pytest.raises(ValidationError):
        repo.append_messages(
            session.id,
            [
                {"role": "user", "content": "ok"},
                {"role": "robot", "content": "bad role"},
            ],
        )
    assert repo.list_messages(session.id) == []


def test_append_messages_unknown_session(repo):
    with pytest.raises(NotFoundError):
        repo.append_messages("missing", [{"role": "user", "content": "hi"}])


def test_append_messages_empty_batch(repo):
    session = repo.create_session("empty")
    assert repo.append_messages(session.id, []) == []


def test_delete_session_cascades_messages(repo):
    """セッション削除でメッセージも消える"""
    session = repo.create_session("to delete")
    repo.append_messages(session.id, [{"role": "user", "content": "bye"}])

    assert repo.delete_session(session.id) is True
    assert repo.get_session(session.id) is None
    assert repo.list_messages(session.id) == []

    with sqlite3.connect(repo.db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
    assert count == 0

    assert repo.delete_session(session.id) is False


def test_set_message_audio(repo):
    session = repo.create_session("audio")
    message = repo.append_messages(session.id, [{"role": "assistant", "content": "Hi"}])[0]
    assert message.audio_base64 is None

    assert repo.set_message_audio(message.id, "QUJD") is True
    assert repo.get_message(message.id).audio_base64 == "QUJD"
    assert repo.set_message_audio(9999, "QUJD") is False


def test_settings_upsert_and_clear(repo):
    """設定は指定したキーだけ更新し、空文字で削除"""
    assert repo.get_settings() is None

    settings = repo.upsert_settings(openrouter_api_key="sk-or")
    assert settings.has_openrouter_key is True
    assert settings.has_murf_key is False

    settings = repo.upsert_settings(murf_api_key="murf-key")
    assert settings.openrouter_api_key == "sk-or"
    assert settings.murf_api_key == "murf-key"

    settings = repo.upsert_settings(openrouter_api_key="")
    assert settings.openrouter_api_key is None
    assert repo.get_settings().murf_api_key == "murf-key"
