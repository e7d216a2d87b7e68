"""
Ollama APIクライアントモジュール

関連クラス:
  - config.OllamaConfig: Ollama設定を提供
  - completion.CompletionService: ``llm.provider: ollama`` の場合にこのクライアントを使用

OpenRouterの代わりにローカルのOllamaで返答を生成する。テキスト形式の返答のみ扱う。
"""

import logging
from typing import Dict, List

import httpx
import ollama

from .errors import UpstreamError


class OllamaClient:
    """Ollama APIクライアント"""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "qwen3:8b",
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
    ):
        """
        初期化

        Args:
            host: OllamaサーバーのURL
            model: 使用するモデル名
            temperature: 生成温度（0.0-1.0）
            max_tokens: 最大トークン数
            timeout: リクエストタイムアウト（秒）
        """
        self.host = host
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = logging.getLogger(__name__)

        self.client = ollama.Client(host=host, timeout=timeout)

    def chat(self, messages: List[Dict[str, str]]) -> str:
        """
        チャット形式で会話し、返答テキストを返す

        Args:
            messages: メッセージのリスト [{"role": "user", "content": "..."}]

        Returns:
            アシスタントの返答テキスト

        Raises:
            UpstreamError: Ollamaのエラー・タイムアウト・空の返答
        """
        try:
            response = self.client.chat(
                model=self.model,
                messages=messages,
                stream=False,
                options={
                    "temperature": self.temperature,
                    "num_predict": self.max_tokens,
                },
            )
        except ollama.ResponseError as e:
            self.logger.error(f"Ollama chat error: {e}")
            raise UpstreamError(e.error or "Failed to get AI response", e.status_code) from e
        except httpx.TimeoutException as e:
            self.logger.error(f"Ollama request timed out: {e}")
            raise UpstreamError("AI response timed out", 504) from e
        except (httpx.HTTPError, ConnectionError) as e:
            self.logger.error(f"Ollama connection error: {e}")
            raise UpstreamError(f"Failed to reach AI service: {e}", 502) from e

        content = response["message"]["content"]
        if not content or not content.strip():
            raise UpstreamError("No response from AI", 500)
        return content
