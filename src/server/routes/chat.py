"""Chat completion proxy and health endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI

from src.ai_chat.errors import ChatAppError, InternalError

from ..dependencies import build_completion_service, get_credentials
from ..schemas import ChatCompletionRequest, ChatCompletionResponse, HealthResponse

logger = logging.getLogger(__name__)


def register_chat_routes(app: FastAPI) -> None:
    """Register chat completion endpoints on the provided app."""

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Simple health check endpoint."""
        return HealthResponse(status="ok")

    @app.post("/api/chat", response_model=ChatCompletionResponse)
    async def chat(request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Forward the ordered history to the LLM and return one assistant reply."""
        try:
            credentials = await asyncio.to_thread(get_credentials)
            service = build_completion_service(credentials)
            reply = await asyncio.to_thread(service.complete, request.messages)
            return ChatCompletionResponse(message=reply)
        except ChatAppError:
            raise
        except Exception as exc:
            logger.exception("Chat request failed: %s", exc)
            raise InternalError() from exc
