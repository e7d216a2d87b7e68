"""Transient user-visible notifications (toasts)."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """A single toast."""

    title: str
    message: str
    variant: str = "default"  # default | destructive
    timestamp: float = field(default_factory=time.time)


class NotificationCenter:
    """Collects notifications for the view; optionally forwards each one to a listener."""

    def __init__(
        self,
        listener: Optional[Callable[[Notification], None]] = None,
        max_items: int = 20,
    ) -> None:
        self._lock = threading.Lock()
        self._items: List[Notification] = []
        self._listener = listener
        self._max_items = max_items

    def notify(self, title: str, message: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, message=message, variant=variant)
        with self._lock:
            self._items.append(notification)
            del self._items[: -self._max_items]
        log = logger.warning if variant == "destructive" else logger.info
        log("%s: %s", title, message)
        if self._listener:
            self._listener(notification)
        return notification

    def error(self, message: str, title: str = "Error") -> Notification:
        return self.notify(title, message, variant="destructive")

    def drain(self) -> List[Notification]:
        """Return and clear pending notifications."""
        with self._lock:
            items, self._items = self._items, []
        return items
