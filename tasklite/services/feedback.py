"""User-visible feedback: the message area and transient notifications."""

from enum import Enum
from typing import Callable, Optional

from tasklite.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class StatusLine:
    """Single transient message area; the next outcome overwrites it."""

    def __init__(self) -> None:
        self.error: Optional[str] = None

    def report(self, error: object) -> None:
        message = str(error) or type(error).__name__
        self.error = message

    def clear(self) -> None:
        self.error = None


class NotificationPermission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class Notifier:
    """
    Best-effort acknowledgments ("Task added", ...).

    ``sink`` shows a message to the user; ``requester`` asks the platform
    for permission and returns the resulting state. Failures of either are
    swallowed and never change the outcome of the operation that
    triggered them.
    """

    def __init__(
        self,
        sink: Optional[Callable[[str], None]] = None,
        requester: Optional[Callable[[], str]] = None,
        permission: NotificationPermission = NotificationPermission.DEFAULT,
    ) -> None:
        self.sink = sink
        self.requester = requester
        self.permission = permission

    def request_permission(self) -> None:
        if self.permission != NotificationPermission.DEFAULT or self.requester is None:
            return
        try:
            self.permission = NotificationPermission(self.requester())
        except Exception:
            logger.debug("Notification permission request failed")

    def notify(self, message: str) -> None:
        if self.permission != NotificationPermission.GRANTED or self.sink is None:
            return
        try:
            self.sink(message)
        except Exception:
            logger.debug("Notification dispatch failed", notification=message)
