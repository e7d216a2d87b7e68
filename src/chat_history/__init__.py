"""Chat History Management

チャットセッション・メッセージの永続化と管理を提供します。
"""

from .models import ApiSettings, ChatSession, Message, MessageRole
from .repository import UNSET, ChatHistoryRepository

__all__ = [
    "ApiSettings",
    "ChatSession",
    "ChatHistoryRepository",
    "Message",
    "MessageRole",
    "UNSET",
]
