"""
Log-only notification handler.

Writes notifications to the application log; the default provider when no external
channel is configured.
"""

import logging

from .base import NotificationHandler, NotificationResult

logger = logging.getLogger("notifications.delivery")

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warning": logging.WARNING}


class LogHandler(NotificationHandler):
    provider_type = "log"

    def validate_config(self, config: dict) -> list[str]:
        level = str(config.get("level") or "info").lower()
        if level not in _LEVELS:
            return [f"Level must be one of: {', '.join(_LEVELS)}"]
        return []

    def send(
        self,
        config: dict,
        message: str,
        title: str | None = None,
        data: dict | None = None,
    ) -> NotificationResult:
        level = _LEVELS[str(config.get("level") or "info").lower()]
        logger.log(level, "Notification%s: %s", f" [{title}]" if title else "", message, extra={"notification_data": data or {}})
        return NotificationResult.ok("Logged")
