"""AI Chat client: optimistic send pipeline and local audio cache."""

from .api_client import ApiRequestError, ChatApiClient
from .audio_cache import AudioCache
from .audio_service import AudioService
from .models import CommittedMessage, PendingMessage, SendResult, SendStatus
from .notifications import Notification, NotificationCenter
from .pipeline import ChatPipeline
from .view import ChatView

__all__ = [
    "ApiRequestError",
    "AudioCache",
    "AudioService",
    "ChatApiClient",
    "ChatPipeline",
    "ChatView",
    "CommittedMessage",
    "Notification",
    "NotificationCenter",
    "PendingMessage",
    "SendResult",
    "SendStatus",
]
