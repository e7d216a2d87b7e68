"""View-side message variants and send results.

An entry in the chat view is either a ``PendingMessage`` (held only by the
client, not yet confirmed by the store) or a ``CommittedMessage`` (carrying
the store-assigned id). Reconciliation swaps one variant for the other.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from src.chat_history.models import Message, MessageRole


@dataclass(frozen=True)
class PendingMessage:
    """Provisional entry; ``local_id`` is unique among pending entries only."""

    local_id: int
    role: MessageRole
    content: str

    @property
    def is_pending(self) -> bool:
        return True

    def to_prompt(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class CommittedMessage:
    """Entry confirmed by the store."""

    message: Message

    @property
    def is_pending(self) -> bool:
        return False

    @property
    def id(self) -> int:
        return self.message.id

    @property
    def role(self) -> MessageRole:
        return self.message.role

    @property
    def content(self) -> str:
        return self.message.content

    @property
    def audio_base64(self) -> Optional[str]:
        return self.message.audio_base64

    def to_prompt(self) -> Dict[str, str]:
        return self.message.to_prompt()


ViewEntry = Union[PendingMessage, CommittedMessage]


class SendStatus(str, Enum):
    """Outcome of one send."""

    COMMITTED = "committed"
    FAILED = "failed"
    REJECTED = "rejected"  # another send for the same session is in flight
    ABANDONED = "abandoned"  # the user switched session before the reply arrived


@dataclass
class SendResult:
    """Value returned by ``ChatPipeline.send``; failures are values, not exceptions."""

    status: SendStatus
    session_id: Optional[str] = None
    messages: List[Message] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.COMMITTED
