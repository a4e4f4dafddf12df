"""
Publish/subscribe notification channel.

Background work (fire-and-forget store writes, inquiry emails) reports its
outcome here instead of to the caller. The UI subscribes and turns
notifications into toasts on its next run.
"""

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, Dict, List

from .logger import get_logger

logger = get_logger(__name__)

PERSISTENCE_ERROR = "persistence-error"
PERSISTENCE_SAVED = "persistence-saved"
MAIL_ERROR = "mail-error"

@dataclass
class Notification:
    """A user-facing message emitted by background work."""
    topic: str
    title: str
    message: str
    level: str = "error"  # 'error', 'warning', 'success', 'info'
    created_at: datetime = field(default_factory=datetime.now)

Subscriber = Callable[[Notification], None]

class NotificationChannel:
    """Thread-safe topic based publish/subscribe channel."""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for a topic and return a function that removes it."""
        with self._lock:
            self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[topic]:
                    self._subscribers[topic].remove(callback)

        return unsubscribe

    def publish(self, notification: Notification) -> None:
        """Deliver a notification to every subscriber of its topic."""
        with self._lock:
            callbacks = list(self._subscribers.get(notification.topic, []))

        if not callbacks:
            logger.debug(f"No subscribers for {notification.topic}: {notification.message}")

        for callback in callbacks:
            try:
                callback(notification)
            except Exception as e:
                logger.error(f"Error in notification subscriber for {notification.topic}: {e}")

class NotificationInbox:
    """Collects notifications until the UI drains them."""

    def __init__(self, maxlen: int = 50):
        self._items: Deque[Notification] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def __call__(self, notification: Notification) -> None:
        with self._lock:
            self._items.append(notification)

    def drain(self) -> List[Notification]:
        """Return and forget all pending notifications."""
        with self._lock:
            items = list(self._items)
            self._items.clear()
        return items

    def __len__(self) -> int:
        return len(self._items)

# Global channel instance
_channel = None

def get_notification_channel() -> NotificationChannel:
    """Get the global notification channel."""
    global _channel
    if _channel is None:
        _channel = NotificationChannel()
    return _channel
