"""HTTP client for the AI Chat server API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import requests

from src.chat_history.models import ChatSession, Message

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiRequestError(Exception):
    """サーバーAPI呼び出しの失敗（通信エラー・非2xx）"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ChatApiClient:
    """
    AI ChatサーバーのAPIクライアント

    送信パイプライン・音声サービスが使う永続化/LLM/TTSの窓口
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 90.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: サーバーのURL
            timeout: リクエストタイムアウト（秒）。LLM呼び出しもこの値で打ち切る
            session: 共有するrequests.Session（省略時は新規作成）
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"{method} {path} timed out: {e}")
            raise ApiRequestError("Request timed out", 504) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiRequestError(f"Could not reach server: {e}") from e

        if not response.ok:
            message = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("error") or body.get("message")
            except ValueError:
                message = response.text or None
            raise ApiRequestError(
                message or f"{response.status_code}: {response.reason}", response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{method} {path} returned a non-JSON body: {e}")
            raise ApiRequestError("Invalid response from server", response.status_code) from e

    @staticmethod
    def _parse(factory: Callable[[Dict[str, Any]], T], data: Any) -> T:
        """レスポンスのJSONをモデルに変換（形式不正はApiRequestError）"""
        try:
            return factory(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected response shape for {factory.__qualname__}: {e}")
            raise ApiRequestError("Invalid response from server") from e

    def _parse_list(self, factory: Callable[[Dict[str, Any]], T], data: Any) -> List[T]:
        if not isinstance(data, list):
            raise ApiRequestError("Invalid response from server")
        return [self._parse(factory, item) for item in data]

    # sessions

    def list_sessions(self) -> List[ChatSession]:
        data = self._request("GET", "/api/chat-sessions")
        return self._parse_list(ChatSession.from_dict, data)

    def create_session(self, title: str) -> ChatSession:
        data = self._request("POST", "/api/chat-sessions", json={"title": title})
        return self._parse(ChatSession.from_dict, data)

    def get_session(self, session_id: str) -> ChatSession:
        data = self._request("GET", f"/api/chat-sessions/{session_id}")
        return self._parse(ChatSession.from_dict, data)

    def delete_session(self, session_id: str) -> None:
        self._request("DELETE", f"/api/chat-sessions/{session_id}")

    # messages

    def list_messages(self, session_id: str) -> List[Message]:
        data = self._request("GET", f"/api/chat-sessions/{session_id}/messages")
        return self._parse_list(Message.from_dict, data)

    def append_messages(
        self, session_id: str, messages: Sequence[Dict[str, str]]
    ) -> List[Message]:
        data = self._request(
            "POST",
            f"/api/chat-sessions/{session_id}/messages",
            json={"messages": list(messages)},
        )
        return self._parse_list(Message.from_dict, data)

    # collaborators

    def complete(self, messages: Sequence[Dict[str, str]]) -> str:
        """会話履歴を送り、アシスタントの返答を取得（空の返答は失敗扱い）"""
        data = self._request("POST", "/api/chat", json={"messages": list(messages)})
        reply = data.get("message") if isinstance(data, dict) else None
        if not reply or not str(reply).strip():
            raise ApiRequestError("No response from AI", 500)
        return reply

    def synthesize(self, text: str, message_id: Optional[int] = None) -> str:
        """テキストを音声化してbase64音声を返す"""
        payload: Dict[str, Any] = {"text": text}
        if message_id is not None:
            payload["messageId"] = message_id
        data = self._request("POST", "/api/tts", json=payload)
        audio = data.get("audioBase64") if isinstance(data, dict) else None
        if not audio:
            raise ApiRequestError("No audio data received", 500)
        return audio

    # settings

    def get_settings(self) -> Dict[str, bool]:
        return self._request("GET", "/api/settings")

    def update_settings(
        self, openrouter_api_key: Optional[str] = None, murf_api_key: Optional[str] = None
    ) -> Dict[str, Any]:
        payload = {}
        if openrouter_api_key is not None:
            payload["openrouterApiKey"] = openrouter_api_key
        if murf_api_key is not None:
            payload["murfApiKey"] = murf_api_key
        return self._request("POST", "/api/settings", json=payload)
