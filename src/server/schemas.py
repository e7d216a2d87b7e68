"""Pydantic schemas for the FastAPI server.

Field names are serialized in camelCase to stay compatible with the
existing web client.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.chat_history import MessageRole


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: str
    details: Optional[Any] = None


class ChatSessionResponse(CamelModel):
    """Serialized chat session."""

    id: str
    title: str
    created_at: str


class ChatSessionCreateRequest(CamelModel):
    """Request body for creating a chat session."""

    title: str = Field(..., min_length=1, description="Session title (first 50 chars of the message)")


class MessageResponse(CamelModel):
    """Serialized message with its store-assigned id."""

    id: int
    chat_session_id: str
    role: MessageRole
    content: str
    audio_base64: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True
    )


class MessagesCreateRequest(BaseModel):
    """Request body for appending messages.

    ``messages`` is validated by hand so a non-array payload yields the
    historical "Messages must be an array" error.
    """

    messages: Any = None


class ChatCompletionRequest(BaseModel):
    """Request body for the completion proxy."""

    messages: Any = None


class ChatCompletionResponse(BaseModel):
    """Assistant reply returned by the completion proxy."""

    message: str


class TTSRequest(CamelModel):
    """Request body for the text-to-speech proxy."""

    text: Any = None
    message_id: Optional[int] = None


class TTSResponse(CamelModel):
    """Base64-encoded audio."""

    audio_base64: str


class SettingsStatusResponse(CamelModel):
    """Which API keys are configured (keys themselves are never returned)."""

    has_openrouter_key: bool
    has_murf_key: bool


class SettingsUpdateRequest(CamelModel):
    """Request body for updating stored API keys."""

    openrouter_api_key: Optional[str] = None
    murf_api_key: Optional[str] = None


class SettingsUpdateResponse(BaseModel):
    """Response for settings update."""

    success: bool
    settings: SettingsStatusResponse


class DeleteResponse(BaseModel):
    """Response for delete endpoints."""

    success: bool
