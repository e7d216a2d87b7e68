"""Chat History Models

チャット履歴のデータモデル定義。

Related Classes: ChatHistoryRepository (repository.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class MessageRole(str, Enum):
    """メッセージの発話者"""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"

    @classmethod
    def values(cls) -> tuple:
        return tuple(role.value for role in cls)


@dataclass(slots=True)
class ChatSession:
    """チャットセッションの表現

    1セッション = 1つの会話スレッド。
    メッセージは messages テーブルに1行ずつ保存される。
    """

    id: str  # UUID形式
    title: str  # 最初のメッセージの先頭50文字
    created_at: str  # ISO8601形式

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatSession":
        """APIレスポンス（camelCase）から生成"""
        return cls(id=data["id"], title=data["title"], created_at=data["createdAt"])


@dataclass(slots=True)
class Message:
    """永続化済みメッセージ

    ``id`` は永続化層だけが採番する（AUTOINCREMENT、単調増加）。
    """

    id: int
    chat_session_id: str
    role: MessageRole
    content: str
    audio_base64: Optional[str] = None

    def to_prompt(self) -> Dict[str, str]:
        """LLMに送る {role, content} 形式に変換"""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """APIレスポンス（camelCase）から生成"""
        return cls(
            id=int(data["id"]),
            chat_session_id=data["chatSessionId"],
            role=MessageRole(data["role"]),
            content=data["content"],
            audio_base64=data.get("audioBase64"),
        )


@dataclass(slots=True)
class ApiSettings:
    """サーバー側に保存するAPIキー設定（1行のみ）"""

    openrouter_api_key: Optional[str]
    murf_api_key: Optional[str]
    updated_at: str

    @property
    def has_openrouter_key(self) -> bool:
        return bool(self.openrouter_api_key)

    @property
    def has_murf_key(self) -> bool:
        return bool(self.murf_api_key)
