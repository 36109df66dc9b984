"""
Alert extraction.

An alert message can carry free text for humans alongside its command
blocks. When the message contains the `{!}` marker, everything that is
not a command block is forwarded to the notifier.

Usage:
    extractor = AlertExtractor(notifier)
    await extractor.handle_alerts("Long signal {!} paper(BTCUSD){buy(1)}")
    # notifier receives "Long signal"
"""

import logging
import re
from typing import Optional

from tradehook.commands.blocks import strip_blocks

logger = logging.getLogger(__name__)

ALERT_MARKER = "{!}"

_WHITESPACE = re.compile(r"\s+")


def extract_alert_text(message: str) -> Optional[str]:
    """
    Get the free text to send for a message.

    Returns:
        The text with blocks and the marker removed and whitespace
        collapsed, or None if the message has no marker or nothing is left
    """
    if ALERT_MARKER not in message:
        return None

    text = strip_blocks(message).replace(ALERT_MARKER, "", 1)
    text = _WHITESPACE.sub(" ", text).strip()
    return text or None


class AlertExtractor:
    """Forwards the free text of marked messages to a notifier."""

    def __init__(self, notifier):
        self._notifier = notifier

    async def handle_alerts(self, message: str) -> Optional[str]:
        """
        Send the message's alert text, if it has any.

        Returns:
            The text that was sent, or None
        """
        text = extract_alert_text(message)
        if text is None:
            return None

        logger.info(f"Sending alert: {text}")
        await self._notifier.send_async(text)
        return text
