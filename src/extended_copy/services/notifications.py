"""User-facing notifications and the status indicator.

Both classes only consume events from the core; they never feed anything
back into it.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, List, Optional

from extended_copy.models import ClipboardState

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)


_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class NotificationManager:
    """Notification sink that logs every message and keeps the latest ones."""

    def __init__(self, history_size: int = 50, on_notify: Optional[Callable[[Notification], None]] = None):
        self._lock = threading.Lock()
        self._history: Deque[Notification] = deque(maxlen=history_size)
        self._on_notify = on_notify

    def notify(self, level: NotificationLevel, title: str, message: str) -> Notification:
        notification = Notification(level=level, title=title, message=message)
        with self._lock:
            self._history.append(notification)

        logger.log(_LOG_LEVELS[level], "%s: %s", title, message)

        if self._on_notify:
            try:
                self._on_notify(notification)
            except Exception:
                logger.exception("Notification callback failed")
        return notification

    def info(self, title: str, message: str) -> Notification:
        return self.notify(NotificationLevel.INFO, title, message)

    def warning(self, title: str, message: str) -> Notification:
        return self.notify(NotificationLevel.WARNING, title, message)

    def error(self, title: str, message: str) -> Notification:
        return self.notify(NotificationLevel.ERROR, title, message)

    @property
    def history(self) -> List[Notification]:
        with self._lock:
            return list(self._history)


class StatusBarController:
    """Renders the clipboard state as a short status title."""

    ICON = "📋"

    def __init__(self, on_render: Optional[Callable[[str], None]] = None):
        self._on_render = on_render
        self.title = self.ICON

    @classmethod
    def render(cls, state: ClipboardState) -> str:
        if state.is_accumulating:
            return f"{cls.ICON} {state.count}"
        return cls.ICON

    def update(self, state: ClipboardState) -> None:
        self.title = self.render(state)
        logger.debug("Status: %s (%s)", self.title, state)
        if self._on_render:
            self._on_render(self.title)
