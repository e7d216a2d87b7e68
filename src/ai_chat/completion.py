"""
チャット補完サービス

関連クラス:
  - openrouter_client.OpenRouterClient / ollama_client.OllamaClient: 実際の呼び出し先
  - server.routes.chat: /api/chat からこのサービスを使用

APIキーはリクエストごとに ``ApiCredentials`` として明示的に渡す
（保存済み設定 → 環境変数 の順で解決）。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from src.chat_history.models import ApiSettings, MessageRole

from .config import Config
from .errors import UpstreamError, ValidationError
from .ollama_client import OllamaClient
from .openrouter_client import OpenRouterClient

logger = logging.getLogger(__name__)


class ChatCompletionClient(Protocol):
    def chat(self, messages: List[Dict[str, str]]) -> str: ...


@dataclass(frozen=True)
class ApiCredentials:
    """1リクエスト分のAPIキー"""

    openrouter_api_key: Optional[str] = None
    murf_api_key: Optional[str] = None

    @classmethod
    def resolve(cls, settings: Optional[ApiSettings]) -> "ApiCredentials":
        """保存済み設定を優先し、なければ環境変数を使う"""
        return cls(
            openrouter_api_key=(settings.openrouter_api_key if settings else None)
            or os.getenv("OPENROUTER_API_KEY"),
            murf_api_key=(settings.murf_api_key if settings else None)
            or os.getenv("MURF_API_KEY"),
        )


def validate_chat_messages(messages: Any) -> List[Dict[str, str]]:
    """/api/chat に渡されたメッセージ配列を検証

    Raises:
        ValidationError: 配列でない・空・role/contentが不正
    """
    if not isinstance(messages, list) or not messages:
        raise ValidationError("Messages array is required")

    allowed_roles = MessageRole.values()
    for msg in messages:
        if not (
            isinstance(msg, dict)
            and isinstance(msg.get("role"), str)
            and msg["role"] in allowed_roles
            and isinstance(msg.get("content"), str)
            and msg["content"].strip()
        ):
            raise ValidationError("Invalid message format or role")

    return [{"role": msg["role"], "content": msg["content"]} for msg in messages]


class CompletionService:
    """会話履歴から返答を1件生成する"""

    def __init__(
        self,
        config: Config,
        credentials: ApiCredentials,
        client: Optional[ChatCompletionClient] = None,
    ):
        self.config = config
        self.credentials = credentials
        self._client = client

    def _build_client(self) -> ChatCompletionClient:
        if self.config.llm.provider == "ollama":
            return OllamaClient(
                host=self.config.ollama.host,
                model=self.config.ollama.model,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                timeout=self.config.llm.timeout_seconds,
            )

        if not self.credentials.openrouter_api_key:
            raise UpstreamError(
                "OpenRouter API key not configured. Please add your API key in "
                "Settings or contact the administrator.",
                500,
            )
        return OpenRouterClient(
            api_key=self.credentials.openrouter_api_key,
            model=self.config.llm.model,
            base_url=self.config.llm.base_url,
            timeout=self.config.llm.timeout_seconds,
            referer=self.config.llm.referer,
            app_title=self.config.llm.app_title,
        )

    def complete(self, messages: Any) -> str:
        """
        Args:
            messages: [{"role": ..., "content": ...}, ...]（検証前）

        Returns:
            アシスタントの返答テキスト
        """
        history = validate_chat_messages(messages)
        if self.config.system_prompt:
            history = [{"role": "system", "content": self.config.system_prompt}] + history

        client = self._client or self._build_client()
        reply = client.chat(history)
        logger.info("Completion generated (%d chars, %d messages)", len(reply), len(history))
        return reply
