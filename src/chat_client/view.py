"""In-memory ordered view of the active chat session."""

from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.chat_history.models import Message, MessageRole

from .models import CommittedMessage, PendingMessage, ViewEntry

Snapshot = Tuple[int, Optional[str], Tuple[ViewEntry, ...]]


class ChatView:
    """Ordered entries for one session plus a generation counter.

    Committed entries are kept sorted by store id; pending entries follow
    them in insertion order. Every session switch bumps ``generation`` so
    late results from an earlier session can be recognized and discarded.
    """

    def __init__(self) -> None:
        self.session_id: Optional[str] = None
        self.generation = 0
        self._entries: List[ViewEntry] = []
        self._local_ids = itertools.count(1)

    # session switching

    def switch_to(self, session_id: Optional[str], messages: Iterable[Message] = ()) -> int:
        """Show another session (None = new chat) and invalidate older sends."""
        self.generation += 1
        self.session_id = session_id
        self._entries = [CommittedMessage(m) for m in sorted(messages, key=lambda m: m.id)]
        return self.generation

    def adopt(self, session_id: str) -> None:
        """Attach a freshly created session to the current (new chat) view."""
        self.session_id = session_id

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    # entries

    @property
    def entries(self) -> List[ViewEntry]:
        return list(self._entries)

    @property
    def committed(self) -> List[Message]:
        return [e.message for e in self._entries if isinstance(e, CommittedMessage)]

    def has_pending(self) -> bool:
        return any(isinstance(e, PendingMessage) for e in self._entries)

    def new_pending(self, role: MessageRole, content: str) -> PendingMessage:
        return PendingMessage(local_id=next(self._local_ids), role=role, content=content)

    def append(self, entry: ViewEntry) -> None:
        self._entries.append(entry)

    def replace(self, local_ids: Sequence[int], entries: Sequence[ViewEntry]) -> None:
        """Swap the given pending entries for ``entries``."""
        targets = set(local_ids)
        kept = [
            e
            for e in self._entries
            if not (isinstance(e, PendingMessage) and e.local_id in targets)
        ]
        self._entries = self._ordered(kept + list(entries))

    def load(self, messages: Iterable[Message]) -> None:
        """Replace committed entries with the store's list, keeping pending ones."""
        pending = [e for e in self._entries if isinstance(e, PendingMessage)]
        committed = [CommittedMessage(m) for m in sorted(messages, key=lambda m: m.id)]
        self._entries = committed + pending

    def set_audio(self, message_id: int, audio_base64: str) -> bool:
        for index, entry in enumerate(self._entries):
            if isinstance(entry, CommittedMessage) and entry.id == message_id:
                self._entries[index] = CommittedMessage(
                    replace(entry.message, audio_base64=audio_base64)
                )
                return True
        return False

    def find(self, message_id: int) -> Optional[Message]:
        for message in self.committed:
            if message.id == message_id:
                return message
        return None

    def history(self) -> List[Dict[str, str]]:
        """Ordered {role, content} list sent to the LLM."""
        return [entry.to_prompt() for entry in self._entries]

    # rollback

    def snapshot(self) -> Snapshot:
        return (self.generation, self.session_id, tuple(self._entries))

    def restore(self, snapshot: Snapshot) -> None:
        generation, session_id, entries = snapshot
        if generation != self.generation:
            return
        self.session_id = session_id
        self._entries = list(entries)

    @staticmethod
    def _ordered(entries: List[ViewEntry]) -> List[ViewEntry]:
        committed = sorted(
            (e for e in entries if isinstance(e, CommittedMessage)), key=lambda e: e.id
        )
        pending = [e for e in entries if isinstance(e, PendingMessage)]
        return committed + pending
