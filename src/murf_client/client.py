"""HTTP client for the Murf text-to-speech API."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from src.ai_chat.errors import UpstreamError, ValidationError, upstream_error_from_response

from .models import SpeechRequest, VoiceSettings

logger = logging.getLogger(__name__)


class MurfClient:
    """
    MurfのAPIクライアント

    テキストを音声に変換し、base64エンコード済みの音声データを返す
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.murf.ai/v1/speech/generate",
        timeout: float = 30.0,
        voice: Optional[VoiceSettings] = None,
    ):
        """
        Args:
            api_key: MurfのAPIキー
            api_url: 音声生成エンドポイントURL
            timeout: リクエストタイムアウト（秒）
            voice: デフォルトの音声設定
        """
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.voice = voice or VoiceSettings()

    def synthesize(self, text: str, voice: Optional[VoiceSettings] = None) -> str:
        """
        音声合成のメイン関数

        Args:
            text: 合成するテキスト
            voice: 音声設定（Noneの場合はデフォルト）

        Returns:
            base64エンコードされた音声データ

        Raises:
            ValidationError: テキストが空の場合
            UpstreamError: API呼び出しの失敗・音声データなし
        """
        if not text or not text.strip():
            raise ValidationError("Text is required")

        voice = voice or self.voice
        if not voice.validate():
            logger.warning("音声設定に問題がありますが、続行します")

        request = SpeechRequest(text=text, voice=voice)

        try:
            response = requests.post(
                self.api_url,
                headers={
                    "Content-Type": "application/json",
                    "api-key": self.api_key,
                },
                json=request.to_api_format(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"音声合成がタイムアウト: {e}")
            raise UpstreamError("Speech generation timed out", 504) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"音声合成に失敗: {e}")
            raise UpstreamError(f"Failed to reach speech service: {e}", 502) from e

        if not response.ok:
            error = upstream_error_from_response(response, "Failed to generate speech")
            logger.error(f"Murf API error: {response.status_code} {error.message}")
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Invalid response from Murf API", 502) from e

        encoded_audio = data.get("encodedAudio")
        if not encoded_audio:
            logger.error(f"No encodedAudio in response: keys={list(data.keys())}")
            raise UpstreamError("No audio data received from Murf API", 500)

        logger.info(f"音声合成成功: {len(encoded_audio)} chars (base64)")
        return encoded_audio
