"""Dependency helpers shared across FastAPI routes."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from src.ai_chat.completion import ApiCredentials, CompletionService
from src.ai_chat.config import Config
from src.ai_chat.errors import UpstreamError
from src.ai_chat.logger import setup_logger
from src.chat_history import ApiSettings, ChatHistoryRepository, ChatSession, Message
from src.murf_client import MurfClient, VoiceSettings

from .schemas import ChatSessionResponse, MessageResponse, SettingsStatusResponse

config = Config.from_yaml()
setup_logger(log_level=config.log_level, log_file=config.log_file)


@lru_cache(maxsize=1)
def get_chat_history_repository() -> ChatHistoryRepository:
    """Singleton ChatHistoryRepository."""
    return ChatHistoryRepository(db_path=config.db_path)


def get_credentials() -> ApiCredentials:
    """Resolve API keys for the current request (stored settings, then env)."""
    repo = get_chat_history_repository()
    return ApiCredentials.resolve(repo.get_settings())


def build_completion_service(credentials: ApiCredentials) -> CompletionService:
    """Create the completion service for one request."""
    return CompletionService(config, credentials)


def build_tts_client(credentials: ApiCredentials) -> MurfClient:
    """Create a Murf client for one request; fails when no key is configured."""
    if not credentials.murf_api_key:
        raise UpstreamError(
            "Murf API key not configured. Please add your API key in Settings.", 500
        )
    return MurfClient(
        api_key=credentials.murf_api_key,
        api_url=config.tts.api_url,
        timeout=config.tts.timeout_seconds,
        voice=VoiceSettings(
            voice_id=config.tts.voice_id,
            model_version=config.tts.model_version,
            audio_format=config.tts.audio_format,
            sample_rate=config.tts.sample_rate,
        ),
    )


def serialize_chat_session(session: ChatSession) -> ChatSessionResponse:
    """Convert ChatSession dataclass to API model."""
    return ChatSessionResponse(
        id=session.id,
        title=session.title,
        created_at=session.created_at,
    )


def serialize_message(message: Message) -> MessageResponse:
    """Convert Message dataclass to API model."""
    return MessageResponse(
        id=message.id,
        chat_session_id=message.chat_session_id,
        role=message.role,
        content=message.content,
        audio_base64=message.audio_base64,
    )


def serialize_settings_status(settings: Optional[ApiSettings]) -> SettingsStatusResponse:
    """Report which keys are stored without exposing them."""
    return SettingsStatusResponse(
        has_openrouter_key=bool(settings and settings.has_openrouter_key),
        has_murf_key=bool(settings and settings.has_murf_key),
    )
