"""Text-to-speech proxy endpoint."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI

from src.ai_chat.errors import ChatAppError, InternalError, ValidationError

from ..dependencies import build_tts_client, get_chat_history_repository, get_credentials
from ..schemas import TTSRequest, TTSResponse

logger = logging.getLogger(__name__)


def register_tts_routes(app: FastAPI) -> None:
    """Register the TTS proxy."""

    @app.post("/api/tts", response_model=TTSResponse)
    async def text_to_speech(request: TTSRequest) -> TTSResponse:
        """Synthesize speech; stores the audio on the message when ``messageId`` is given."""
        if not request.text or not isinstance(request.text, str):
            raise ValidationError("Text is required")

        repo = get_chat_history_repository()
        try:
            credentials = await asyncio.to_thread(get_credentials)
            client = build_tts_client(credentials)
            audio = await asyncio.to_thread(client.synthesize, request.text)

            # メッセージIDは1から採番されるので0は未指定扱い
            if request.message_id:
                stored = await asyncio.to_thread(
                    repo.set_message_audio, request.message_id, audio
                )
                if not stored:
                    logger.warning("TTS audio not stored: message %s not found", request.message_id)

            return TTSResponse(audio_base64=audio)
        except ChatAppError:
            raise
        except Exception as exc:
            logger.exception("TTS request failed: %s", exc)
            raise InternalError() from exc
