"""
Notification delivery.

Provides:
- Notification channels (logging, callback, webhook)
- A Notifier that fans a message out to every channel
- Async delivery that runs channels in the default executor
- Recent notification history
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """A single sent notification."""

    text: str
    timestamp: datetime = field(default_factory=datetime.utcnow)
    delivered: Dict[str, bool] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.timestamp.isoformat()}] {self.text}"


class NotificationChannel(ABC):
    """Base class for notification channels."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def send(self, text: str) -> bool:
        """
        Deliver a notification.

        Args:
            text: Message to deliver

        Returns:
            True if delivered successfully
        """
        pass


class LoggingChannel(NotificationChannel):
    """Channel that writes notifications to the log."""

    def __init__(self, level: int = logging.WARNING):
        self._level = level

    def send(self, text: str) -> bool:
        logger.log(self._level, f"[NOTIFY] {text}")
        return True


class CallbackChannel(NotificationChannel):
    """Channel that calls a callback function."""

    def __init__(self, callback: Callable[[str], None]):
        self._callback = callback

    def send(self, text: str) -> bool:
        try:
            self._callback(text)
            return True
        except Exception as e:
            logger.error(f"Notification callback failed: {e}")
            return False


class WebhookChannel(NotificationChannel):
    """Channel that POSTs notifications as JSON to a URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
    ):
        """
        Initialize webhook channel.

        Args:
            url: Endpoint receiving `{"text": ...}` payloads
            timeout: Request timeout in seconds
            session: Optional requests session (created if not given)
            max_retries: Retries for the created session on 429/5xx
        """
        self._url = url
        self._timeout = timeout

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=max_retries,
                backoff_factor=1,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=frozenset(["POST"]),
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    def send(self, text: str) -> bool:
        try:
            response = self._session.post(
                self._url,
                json={"text": text},
                timeout=self._timeout,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.error(f"Webhook notification to {self._url} failed: {e}")
            return False


class Notifier:
    """
    Sends notifications to every registered channel.

    A channel that fails is logged and skipped; the other channels still
    receive the message.

    Usage:
        notifier = Notifier()
        notifier.add_channel(LoggingChannel())
        notifier.add_channel(WebhookChannel("https://example.com/hook"))
        notifier.send("Long entry filled")
    """

    def __init__(self, max_history: int = 100):
        self._channels: List[NotificationChannel] = []
        self._history: List[Notification] = []
        self._max_history = max_history

    def add_channel(self, channel: NotificationChannel) -> None:
        """Add a notification channel."""
        self._channels.append(channel)
        logger.debug(f"Added notification channel: {channel.name}")

    def remove_channel(self, channel: NotificationChannel) -> None:
        """Remove a notification channel."""
        if channel in self._channels:
            self._channels.remove(channel)

    @property
    def channels(self) -> List[NotificationChannel]:
        return list(self._channels)

    def send(self, text: str) -> Notification:
        """
        Send a notification to all channels.

        Args:
            text: Message to send

        Returns:
            The recorded notification with per-channel delivery status
        """
        notification = Notification(text=text)

        for channel in self._channels:
            try:
                notification.delivered[channel.name] = channel.send(text)
            except Exception as e:
                logger.error(f"Channel {channel.name} failed: {e}")
                notification.delivered[channel.name] = False

        self._record(notification)
        return notification

    async def send_async(self, text: str) -> Notification:
        """
        Send a notification without blocking the event loop.

        Channel sends may do network I/O, so each runs in the default
        executor. Failures are isolated per channel as in `send`.

        Args:
            text: Message to send

        Returns:
            The recorded notification with per-channel delivery status
        """
        notification = Notification(text=text)
        loop = asyncio.get_running_loop()

        for channel in list(self._channels):
            try:
                notification.delivered[channel.name] = await loop.run_in_executor(
                    None, channel.send, text
                )
            except Exception as e:
                logger.error(f"Channel {channel.name} failed: {e}")
                notification.delivered[channel.name] = False

        self._record(notification)
        return notification

    def _record(self, notification: Notification) -> None:
        self._history.append(notification)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def get_recent(self, limit: Optional[int] = None) -> List[Notification]:
        """Get recently sent notifications, oldest first."""
        if limit is None:
            return list(self._history)
        return self._history[-limit:]
