from __future__ import annotations

import logging

from barberai.application.ports.message_platform import MessagePlatformPort


class LoggingMessagePlatform(MessagePlatformPort):
    """Stand-in transport: logs every notification and keeps it for inspection."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self._logger = logging.getLogger(__name__)

    def send_text(self, recipient_id: str, text: str) -> None:
        self.sent.append((recipient_id, text))
        self._logger.info("Mock send notification", extra={"recipient_id": recipient_id, "text": text})
