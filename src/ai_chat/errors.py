"""AI Chatのカスタム例外定義

サーバー・コラボレータ（LLM / TTS）・永続化層で共通に使う例外クラス。
各例外はHTTPステータスとユーザーに返すメッセージを保持し、
FastAPIの例外ハンドラで ``{"error": message}`` に変換されます。
"""

from __future__ import annotations

from typing import Optional


class ChatAppError(Exception):
    """AI Chat基底例外"""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ChatAppError):
    """入力形式の不正（空メッセージ、不正なrole、配列でないpayloadなど）"""

    status_code = 400


class NotFoundError(ChatAppError):
    """存在しないセッション"""

    status_code = 404


class UpstreamError(ChatAppError):
    """LLM / TTS コラボレータの失敗、またはAPIキー未設定

    コラボレータが返したステータスとエラーテキストをそのまま保持する。
    """

    status_code = 500


class InternalError(ChatAppError):
    """想定外のエラー（メッセージは汎用のもの）"""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, 500)


def upstream_error_from_response(response, default_message: str) -> UpstreamError:
    """コラボレータの非2xxレスポンスからUpstreamErrorを組み立てる

    エラーテキストは ``error.message`` → ``error`` → ``message`` → 生テキスト
    の順に探し、見つからなければ ``default_message`` を使う。
    """
    message = None
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
        elif isinstance(error, str):
            message = error
        if not message and isinstance(data.get("message"), str):
            message = data["message"]
    elif response.text:
        message = response.text

    return UpstreamError(message or default_message, response.status_code)
