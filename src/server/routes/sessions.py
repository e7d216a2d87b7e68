"""Chat session and message endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import List

from fastapi import FastAPI

from src.ai_chat.errors import ChatAppError, InternalError, NotFoundError, ValidationError

from ..dependencies import get_chat_history_repository, serialize_chat_session, serialize_message
from ..schemas import (
    ChatSessionCreateRequest,
    ChatSessionResponse,
    DeleteResponse,
    MessageResponse,
    MessagesCreateRequest,
)

logger = logging.getLogger(__name__)


def register_session_routes(app: FastAPI) -> None:
    """Register chat session / message CRUD endpoints."""

    @app.get("/api/chat-sessions", response_model=List[ChatSessionResponse])
    async def list_chat_sessions() -> List[ChatSessionResponse]:
        """List chat sessions, newest first."""
        repo = get_chat_history_repository()
        try:
            sessions = await asyncio.to_thread(repo.list_sessions)
            return [serialize_chat_session(session) for session in sessions]
        except Exception as exc:
            logger.exception("Failed to list chat sessions: %s", exc)
            raise InternalError("Failed to list chat sessions") from exc

    @app.post("/api/chat-sessions", response_model=ChatSessionResponse)
    async def create_chat_session(request: ChatSessionCreateRequest) -> ChatSessionResponse:
        """Create a new (empty) chat session."""
        repo = get_chat_history_repository()
        try:
            session = await asyncio.to_thread(repo.create_session, request.title)
            return serialize_chat_session(session)
        except ChatAppError:
            raise
        except Exception as exc:
            logger.exception("Failed to create chat session: %s", exc)
            raise InternalError("Failed to create chat session") from exc

    @app.get("/api/chat-sessions/{session_id}", response_model=ChatSessionResponse)
    async def get_chat_session(session_id: str) -> ChatSessionResponse:
        """Fetch a single chat session."""
        repo = get_chat_history_repository()
        try:
            session = await asyncio.to_thread(repo.get_session, session_id)
            if not session:
                raise NotFoundError("Chat session not found")
            return serialize_chat_session(session)
        except ChatAppError:
            raise
        except Exception as exc:
            logger.exception("Failed to get chat session %s: %s", session_id, exc)
            raise InternalError("Failed to get chat session") from exc

    @app.delete("/api/chat-sessions/{session_id}", response_model=DeleteResponse)
    async def delete_chat_session(session_id: str) -> DeleteResponse:
        """Delete a chat session and all of its messages."""
        repo = get_chat_history_repository()
        try:
            deleted = await asyncio.to_thread(repo.delete_session, session_id)
            if not deleted:
                raise NotFoundError("Chat session not found")
            return DeleteResponse(success=True)
        except ChatAppError:
            raise
        except Exception as exc:
            logger.exception("Failed to delete chat session %s: %s", session_id, exc)
            raise InternalError("Failed to delete chat session") from exc

    @app.get(
        "/api/chat-sessions/{session_id}/messages", response_model=List[MessageResponse]
    )
    async def list_messages(session_id: str) -> List[MessageResponse]:
        """List messages of a session ordered by id (empty for unknown sessions)."""
        repo = get_chat_history_repository()
        try:
            messages = await asyncio.to_thread(repo.list_messages, session_id)
            return [serialize_message(message) for message in messages]
        except Exception as exc:
            logger.exception("Failed to get messages for %s: %s", session_id, exc)
            raise InternalError("Failed to get messages") from exc

    @app.post(
        "/api/chat-sessions/{session_id}/messages", response_model=List[MessageResponse]
    )
    async def create_messages(
        session_id: str, request: MessagesCreateRequest
    ) -> List[MessageResponse]:
        """Append a batch of messages; ids are assigned in input order."""
        if not isinstance(request.messages, list):
            raise ValidationError("Messages must be an array")

        repo = get_chat_history_repository()
        try:
            created = await asyncio.to_thread(
                repo.append_messages, session_id, request.messages
            )
            return [serialize_message(message) for message in created]
        except ChatAppError:
            raise
        except Exception as exc:
            logger.exception("Failed to create messages for %s: %s", session_id, exc)
            raise InternalError("Failed to create messages") from exc
