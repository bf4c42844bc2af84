"""User-facing notifications emitted by a session."""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    """Severity of a notification.

    Attributes:
        SUCCESS: An operation the user asked for completed
        INFO: Progress or a state change worth showing
        WARNING: The user needs to do something first, or cancelled
        ERROR: An operation failed
    """

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


Notifier = Callable[[str, NotificationLevel], None]

_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


def log_notifier(message: str, level: NotificationLevel) -> None:
    """Notifier that forwards every notification to the module logger."""
    logger.log(_LOG_LEVELS[level], message)
