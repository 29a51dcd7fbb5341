"""
Notifications - User-visible messages emitted by the client

The UI layer registers a sink; without one, messages are only kept in the
history and logged.
"""
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class Notification:
    """Single user-facing message"""

    def __init__(self, level: str, message: str):
        self.level = level
        self.message = message

    def __repr__(self) -> str:
        return f"Notification({self.level}: {self.message})"


class Notifier:
    """Collects notifications and forwards them to an optional sink"""

    LEVELS = {
        "success": logging.INFO,
        "info": logging.INFO,
        "error": logging.ERROR,
    }

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None):
        self.sink = sink
        self.history: List[Notification] = []

    def notify(self, level: str, message: str) -> Notification:
        notification = Notification(level, message)
        self.history.append(notification)
        logger.log(self.LEVELS.get(level, logging.INFO), "[Notify] %s", message)
        if self.sink is not None:
            self.sink(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify("success", message)

    def info(self, message: str) -> Notification:
        return self.notify("info", message)

    def error(self, message: str) -> Notification:
        return self.notify("error", message)

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [n.message for n in self.history if level is None or n.level == level]
