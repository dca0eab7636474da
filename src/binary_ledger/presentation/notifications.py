"""Transient notifications and their delivery.

Provides an in-process notification queue with auto-dismiss and an
optional Telegram forwarder.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from binary_ledger.models import DEFAULT_DISPLAY_SECONDS, Notification, Severity

logger = logging.getLogger(__name__)

NotificationSink = Callable[[Notification], None]

SEVERITY_EMOJI = {
    Severity.INFO: "ℹ️",
    Severity.SUCCESS: "✅",
    Severity.WARNING: "⚠️",
    Severity.DANGER: "🚨",
}


def format_notification(notification: Notification) -> str:
    return f"{SEVERITY_EMOJI[notification.severity]} {notification.message}"


@dataclass
class _Displayed:
    notification: Notification
    expires_at: float


class NotificationCenter:
    """Queues notifications until they are read or expire.

    Every notification is also passed to each registered sink.
    Sink failures are logged and never reach the caller.
    """

    def __init__(
        self,
        display_seconds: float = DEFAULT_DISPLAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize notification center.

        Args:
            display_seconds: Default time a notification stays visible
            clock: Monotonic clock in seconds
        """
        self.display_seconds = display_seconds
        self._clock = clock
        self._active: list[_Displayed] = []
        self._sinks: list[NotificationSink] = []
        self.history: list[Notification] = []

    def add_sink(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def notify(self, message: str, severity: Severity = Severity.INFO) -> Notification:
        """Display a message."""
        return self.publish(Notification(message, severity, self.display_seconds))

    def publish(self, notification: Notification) -> Notification:
        """Display an already built notification."""
        self._active.append(
            _Displayed(notification, self._clock() + notification.duration)
        )
        self.history.append(notification)
        log_level = logging.WARNING if notification.severity in (
            Severity.WARNING, Severity.DANGER
        ) else logging.INFO
        logger.log(log_level, f"[{notification.severity.value}] {notification.message}")

        for sink in self._sinks:
            try:
                sink(notification)
            except Exception as e:
                logger.error(f"Notification sink {sink!r} failed: {e}")
        return notification

    def expire(self, now: Optional[float] = None) -> list[Notification]:
        """Dismiss notifications whose display time has elapsed.

        Returns:
            The dismissed notifications
        """
        now = self._clock() if now is None else now
        expired = [d.notification for d in self._active if d.expires_at <= now]
        self._active = [d for d in self._active if d.expires_at > now]
        return expired

    @property
    def active(self) -> list[Notification]:
        self.expire()
        return [d.notification for d in self._active]

    def get_pending_messages(self) -> list[str]:
        """Get formatted messages still on display and clear them."""
        messages = [format_notification(d.notification) for d in self._active]
        self._active.clear()
        return messages


@dataclass
class TelegramConfig:
    """Configuration for Telegram forwarding."""
    bot_token: str = ""
    chat_id: str = ""
    enabled: bool = False
    timeout: float = 10.0


class TelegramForwarder:
    """Forwards notifications to a Telegram chat via the Bot API."""

    API_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(self, config: Optional[TelegramConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or TelegramConfig()
        self._session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.enabled and self.config.bot_token and self.config.chat_id)

    def send(self, notification: Notification) -> bool:
        """Send one notification.

        Returns:
            True if Telegram accepted the message
        """
        if not self.is_configured:
            return False

        try:
            response = self._session.post(
                self.API_URL.format(token=self.config.bot_token),
                json={
                    "chat_id": self.config.chat_id,
                    "text": format_notification(notification),
                },
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.error(f"Failed to forward notification to Telegram: {e}")
            return False

    def __call__(self, notification: Notification) -> None:
        self.send(notification)
