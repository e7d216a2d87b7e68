"""Chat History Repository

チャットセッション・メッセージ・APIキー設定のCRUD操作を提供するリポジトリクラス。
メッセージIDはこのリポジトリだけが採番する（クライアント側の仮IDとは衝突しない）。

Related Classes: ChatSession, Message, ApiSettings (models.py)
"""

from __future__ import annotations

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from src.ai_chat.errors import NotFoundError, ValidationError

from .models import ApiSettings, ChatSession, Message, MessageRole

logger = logging.getLogger(__name__)

UNSET = object()


class ChatHistoryRepository:
    """SQLiteベースのチャット履歴管理。"""

    def __init__(self, db_path: Optional[Path] = None):
        root = Path(__file__).resolve().parents[2]
        default_path = root / "data" / "ai_chat.db"
        env_path = os.getenv("AI_CHAT_DB_PATH")
        if db_path:
            self.db_path = Path(db_path)
        elif env_path:
            self.db_path = Path(env_path)
        else:
            self.db_path = default_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _initialize(self) -> None:
        """スキーマ初期化（chat_sessions / messages / settings）"""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    chat_session_id TEXT NOT NULL
                        REFERENCES chat_sessions(id) ON DELETE CASCADE,
                    role TEXT NOT NULL CHECK (role IN ('user','assistant','system')),
                    content TEXT NOT NULL,
                    audio_base64 TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    openrouter_api_key TEXT,
                    murf_api_key TEXT,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_messages_session ON messages(chat_session_id)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_sessions_created ON chat_sessions(created_at DESC)"
            )

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> ChatSession:
        return ChatSession(id=row["id"], title=row["title"], created_at=row["created_at"])

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> Message:
        return Message(
            id=row["id"],
            chat_session_id=row["chat_session_id"],
            role=MessageRole(row["role"]),
            content=row["content"],
            audio_base64=row["audio_base64"],
        )

    # ------------------------------------------------------------------
    # sessions

    def create_session(self, title: str) -> ChatSession:
        """新規チャットセッションを作成

        Args:
            title: セッションのタイトル

        Returns:
            作成されたChatSessionオブジェクト

        Raises:
            ValidationError: タイトルが空の場合
        """
        if not title or not title.strip():
            raise ValidationError("Session title is required")

        session_id = str(uuid.uuid4())
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO chat_sessions (id, title, created_at) VALUES (?, ?, ?)",
                (session_id, title, self._now()),
            )
            row = conn.execute(
                "SELECT * FROM chat_sessions WHERE id = ?", (session_id,)
            ).fetchone()
        logger.info("Chat session created: %s", session_id)
        return self._row_to_session(row)

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        """セッションIDでセッションを取得（存在しない場合はNone）"""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM chat_sessions WHERE id = ?", (session_id,)
            ).fetchone()
        return self._row_to_session(row) if row else None

    def list_sessions(self) -> List[ChatSession]:
        """セッション一覧を取得（新しい順）"""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM chat_sessions ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [self._row_to_session(row) for row in rows]

    def delete_session(self, session_id: str) -> bool:
        """セッションを削除（メッセージもカスケード削除）

        Returns:
            削除成功時True、セッションが存在しない場合False
        """
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM chat_sessions WHERE id = ?", (session_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Chat session deleted: %s", session_id)
        return deleted

    # ------------------------------------------------------------------
    # messages

    def list_messages(self, session_id: str) -> List[Message]:
        """セッションのメッセージをID昇順で取得（存在しないセッションは空リスト）"""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM messages WHERE chat_session_id = ? ORDER BY id ASC",
                (session_id,),
            ).fetchall()
        return [self._row_to_message(row) for row in rows]

    def append_messages(
        self, session_id: str, messages: Sequence[Dict[str, Any]]
    ) -> List[Message]:
        """メッセージをまとめて追加（1トランザクション、入力順に採番）

        Args:
            session_id: 追加先セッションID
            messages: [{"role": "user", "content": "..."}, ...]

        Returns:
            採番済みのMessageリスト（入力順）

        Raises:
            ValidationError: roleまたはcontentが不正な場合
            NotFoundError: セッションが存在しない場合
        """
        if not messages:
            return []

        rows = []
        for item in messages:
            role = item.get("role") if isinstance(item, dict) else None
            content = item.get("content") if isinstance(item, dict) else None
            if role not in MessageRole.values():
                raise ValidationError("Invalid message data: unknown role")
            if not isinstance(content, str) or not content.strip():
                raise ValidationError("Invalid message data: content is required")
            rows.append((session_id, role, content, item.get("audioBase64")))

        with self._connect() as conn:
            exists = conn.execute(
                "SELECT 1 FROM chat_sessions WHERE id = ?", (session_id,)
            ).fetchone()
            if not exists:
                raise NotFoundError("Chat session not found")

            ids = []
            for row in rows:
                cursor = conn.execute(
                    """
                    INSERT INTO messages (chat_session_id, role, content, audio_base64)
                    VALUES (?, ?, ?, ?)
                    """,
                    row,
                )
                ids.append(cursor.lastrowid)

            placeholders = ",".join("?" for _ in ids)
            created = conn.execute(
                f"SELECT * FROM messages WHERE id IN ({placeholders}) ORDER BY id ASC",
                ids,
            ).fetchall()
        return [self._row_to_message(row) for row in created]

    def get_message(self, message_id: int) -> Optional[Message]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
        return self._row_to_message(row) if row else None

    def set_message_audio(self, message_id: int, audio_base64: str) -> bool:
        """生成済み音声をメッセージに保存

        Returns:
            更新成功時True、メッセージが存在しない場合False
        """
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE messages SET audio_base64 = ? WHERE id = ?",
                (audio_base64, message_id),
            )
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # settings

    def get_settings(self) -> Optional[ApiSettings]:
        """保存済みAPIキー設定を取得（未登録ならNone）"""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM settings WHERE id = 1").fetchone()
        if not row:
            return None
        return ApiSettings(
            openrouter_api_key=row["openrouter_api_key"],
            murf_api_key=row["murf_api_key"],
            updated_at=row["updated_at"],
        )

    def upsert_settings(
        self, openrouter_api_key: Any = UNSET, murf_api_key: Any = UNSET
    ) -> ApiSettings:
        """APIキー設定を作成または更新

        指定されたキーだけを変更する。空文字はキーの削除として扱う。
        """
        current = self.get_settings()
        openrouter = current.openrouter_api_key if current else None
        murf = current.murf_api_key if current else None
        if openrouter_api_key is not UNSET:
            openrouter = openrouter_api_key or None
        if murf_api_key is not UNSET:
            murf = murf_api_key or None

        now = self._now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO settings (id, openrouter_api_key, murf_api_key, updated_at)
                VALUES (1, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    openrouter_api_key = excluded.openrouter_api_key,
                    murf_api_key = excluded.murf_api_key,
                    updated_at = excluded.updated_at
                """,
                (openrouter, murf, now),
            )
        return ApiSettings(openrouter_api_key=openrouter, murf_api_key=murf, updated_at=now)
