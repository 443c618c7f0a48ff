"""
User-visible notification capability.

The host supplies a callable taking the message text; without one,
notifications go to a dedicated logger.
"""
import logging
from typing import Callable

logger = logging.getLogger("togglsync.notifications")

Notifier = Callable[[str], None]


def log_notifier(message: str) -> None:
    logger.warning(message)


def error_message(error: Exception) -> str:
    return f"Error communicating with Toggl API: {error}"
