"""Optimistic send pipeline.

``ChatPipeline.send`` shows the user's message immediately as a pending
entry, asks the server for a reply, and then either reconciles the pending
entry with the store-assigned messages or rolls the view back to exactly
what it was before the send.

Guarantees:
  - at most one in-flight send per session; a second one is rejected
  - a reply that arrives after the user switched session is discarded
  - nothing is persisted unless the completion succeeded, and the user and
    assistant messages are persisted together (user first)
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from src.chat_history.models import ChatSession, MessageRole

from .api_client import ApiRequestError, ChatApiClient
from .models import CommittedMessage, SendResult, SendStatus
from .notifications import NotificationCenter
from .view import ChatView, Snapshot

logger = logging.getLogger(__name__)

NEW_SESSION_KEY = "<new>"


class ChatPipeline:
    """Send / reconcile / rollback around the chat view."""

    def __init__(
        self,
        api: ChatApiClient,
        view: Optional[ChatView] = None,
        notifier: Optional[NotificationCenter] = None,
        title_length: int = 50,
    ) -> None:
        self.api = api
        self.view = view or ChatView()
        self.notifier = notifier or NotificationCenter()
        self.title_length = title_length
        self._in_flight: Set[str] = set()

    def is_sending(self, session_id: Optional[str] = None) -> bool:
        return (session_id or NEW_SESSION_KEY) in self._in_flight

    async def send(self, content: str, session_id: Optional[str] = None) -> SendResult:
        """Send one user message.

        Args:
            content: text typed by the user (must be non-empty after trimming)
            session_id: target session; None starts a new session

        Returns:
            SendResult describing the outcome
        """
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            return SendResult(SendStatus.FAILED, session_id, error="Message cannot be empty")

        key = session_id or NEW_SESSION_KEY
        if key in self._in_flight:
            logger.warning("Send rejected: another message is in flight for %s", key)
            return SendResult(
                SendStatus.REJECTED, session_id, error="A message is already being sent"
            )

        keys = {key}
        self._in_flight.add(key)
        try:
            return await self._send(text, session_id, keys)
        finally:
            self._in_flight.difference_update(keys)

    async def _send(self, text: str, session_id: Optional[str], keys: Set[str]) -> SendResult:
        if session_id is None:
            if self.view.session_id is not None:
                self.view.switch_to(None)
            generation = self.view.generation
            try:
                session = await asyncio.to_thread(
                    self.api.create_session, text[: self.title_length]
                )
            except ApiRequestError as e:
                self.notifier.error(f"Failed to create chat: {e.message}")
                return SendResult(SendStatus.FAILED, None, error=e.message)

            session_id = session.id
            # 新規チャット用のキーは、実セッションが決まった時点で手放す
            keys.discard(NEW_SESSION_KEY)
            self._in_flight.discard(NEW_SESSION_KEY)
            if not self.view.is_current(generation):
                logger.info("New session %s abandoned before first message", session_id)
                return SendResult(SendStatus.ABANDONED, session_id)
            self.view.adopt(session_id)
            keys.add(session_id)
            self._in_flight.add(session_id)
        elif self.view.session_id != session_id:
            if not await self.open_session(session_id):
                return SendResult(
                    SendStatus.FAILED, session_id, error="Failed to load chat session"
                )

        generation = self.view.generation
        snapshot = self.view.snapshot()
        pending = self.view.new_pending(MessageRole.USER, text)
        self.view.append(pending)
        history = self.view.history()

        try:
            reply = await asyncio.to_thread(self.api.complete, history)
            if not self.view.is_current(generation):
                logger.info("Discarding reply for abandoned session %s", session_id)
                return SendResult(SendStatus.ABANDONED, session_id)

            user_entry = self.view.new_pending(MessageRole.USER, text)
            assistant_entry = self.view.new_pending(MessageRole.ASSISTANT, reply)
            self.view.replace([pending.local_id], [user_entry, assistant_entry])

            committed = await asyncio.to_thread(
                self.api.append_messages,
                session_id,
                [user_entry.to_prompt(), assistant_entry.to_prompt()],
            )
        except ApiRequestError as e:
            return self._rollback(snapshot, session_id, e.message)
        except asyncio.CancelledError:
            self.view.restore(snapshot)
            raise

        if not self.view.is_current(generation):
            logger.info("Session %s left while saving; view not updated", session_id)
            return SendResult(SendStatus.COMMITTED, session_id, committed)

        self.view.replace(
            [user_entry.local_id, assistant_entry.local_id],
            [CommittedMessage(message) for message in committed],
        )
        await self._reload(session_id, generation)
        logger.info(
            "Send committed to %s: ids=%s", session_id, [message.id for message in committed]
        )
        return SendResult(SendStatus.COMMITTED, session_id, committed)

    def _rollback(self, snapshot: Snapshot, session_id: Optional[str], error: str) -> SendResult:
        self.view.restore(snapshot)
        self.notifier.error(error)
        logger.warning("Send to %s failed, view rolled back: %s", session_id, error)
        return SendResult(SendStatus.FAILED, session_id, error=error)

    async def _reload(self, session_id: str, generation: int) -> None:
        try:
            messages = await asyncio.to_thread(self.api.list_messages, session_id)
        except ApiRequestError as e:
            logger.warning("Could not refresh messages for %s: %s", session_id, e.message)
            return
        if self.view.is_current(generation):
            self.view.load(messages)

    # session navigation

    async def open_session(self, session_id: str) -> bool:
        """Switch the view to ``session_id``; outstanding sends for other sessions are abandoned."""
        generation = self.view.switch_to(session_id)
        try:
            messages = await asyncio.to_thread(self.api.list_messages, session_id)
        except ApiRequestError as e:
            self.notifier.error(f"Failed to load chat: {e.message}")
            return False
        if self.view.is_current(generation):
            self.view.load(messages)
        return True

    def new_chat(self) -> None:
        self.view.switch_to(None)

    async def refresh(self) -> None:
        if self.view.session_id is not None:
            await self._reload(self.view.session_id, self.view.generation)

    async def list_sessions(self) -> List[ChatSession]:
        try:
            return await asyncio.to_thread(self.api.list_sessions)
        except ApiRequestError as e:
            self.notifier.error(f"Failed to load chats: {e.message}")
            return []

    async def delete_session(self, session_id: str) -> bool:
        try:
            await asyncio.to_thread(self.api.delete_session, session_id)
        except ApiRequestError as e:
            self.notifier.error(f"Failed to delete chat: {e.message}")
            return False
        if self.view.session_id == session_id:
            self.new_chat()
        return True
