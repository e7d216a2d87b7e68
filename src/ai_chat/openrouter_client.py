"""
OpenRouter APIクライアントモジュール

関連クラス:
  - config.LLMConfig: 接続先・モデル設定を提供
  - completion.CompletionService: このクライアントを使用

OpenAI互換の /chat/completions を呼び出し、アシスタントの返答テキストだけを返す。
"""

import logging
from typing import Dict, List

import requests

from .errors import UpstreamError, upstream_error_from_response


class OpenRouterClient:
    """OpenRouter チャット補完クライアント"""

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek/deepseek-chat",
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 60.0,
        referer: str = "http://localhost:8000",
        app_title: str = "AI Chat App",
    ):
        """
        Args:
            api_key: OpenRouterのAPIキー
            model: 使用するモデル名
            base_url: APIのベースURL
            timeout: リクエストタイムアウト（秒）
            referer: HTTP-Refererヘッダ
            app_title: X-Titleヘッダ
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.referer = referer
        self.app_title = app_title
        self.logger = logging.getLogger(__name__)

    def chat(self, messages: List[Dict[str, str]]) -> str:
        """
        会話履歴を送ってアシスタントの返答を1件取得

        Args:
            messages: メッセージのリスト [{"role": "user", "content": "..."}]

        Returns:
            アシスタントの返答テキスト

        Raises:
            UpstreamError: 通信失敗・非2xx・空の返答
        """
        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "HTTP-Referer": self.referer,
                    "X-Title": self.app_title,
                    "Content-Type": "application/json",
                },
                json={"model": self.model, "messages": messages},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            self.logger.error(f"OpenRouter request timed out: {e}")
            raise UpstreamError("AI response timed out", 504) from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"OpenRouter request failed: {e}")
            raise UpstreamError(f"Failed to reach AI service: {e}", 502) from e

        if not response.ok:
            error = upstream_error_from_response(response, "Failed to get AI response")
            self.logger.error(f"OpenRouter API error: {response.status_code} {error.message}")
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Invalid response from AI", 502) from e

        choices = (data.get("choices") if isinstance(data, dict) else None) or []
        content = None
        if choices and isinstance(choices[0], dict):
            content = (choices[0].get("message") or {}).get("content")

        if not content or not str(content).strip():
            raise UpstreamError("No response from AI", 500)
        return content
