"""
Notification dispatcher.

Routes notifications to the provider configured in `settings.NOTIFICATIONS` and
records every attempt in `NotificationLog`.
"""

import logging

from django.conf import settings

from .handlers import get_handler
from .handlers.base import NotificationResult
from .models import NotificationLog

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Send notifications through a single configured provider.

    `notify()` never raises for delivery problems; callers inspect the returned
    `NotificationResult`.
    """

    def __init__(self, provider_type: str = "log", config: dict | None = None):
        self.provider_type = provider_type
        self.config = dict(config or {})

    @classmethod
    def from_settings(cls) -> "NotificationDispatcher":
        raw = getattr(settings, "NOTIFICATIONS", None) or {}
        return cls(
            provider_type=str(raw.get("provider_type") or "log"),
            config=raw.get("config") or {},
        )

    def notify(
        self,
        *,
        message: str,
        title: str | None = None,
        data: dict | None = None,
        rule_name: str = "",
        user_id: str = "",
    ) -> NotificationResult:
        result = self._send(message=message, title=title, data=data)
        if not result.success:
            logger.warning(
                "Notification via %s failed (%s): %s",
                self.provider_type,
                result.error_code,
                result.message,
            )
        self._log_notification(message, result, rule_name=rule_name, user_id=user_id)
        return result

    def _send(self, *, message: str, title: str | None, data: dict | None) -> NotificationResult:
        try:
            handler = get_handler(self.provider_type)
        except ValueError as e:
            return NotificationResult.error(str(e), code="UNKNOWN_PROVIDER_TYPE")

        errors = handler.validate_config(self.config)
        if errors:
            return NotificationResult.error("; ".join(errors), code="INVALID_CONFIG")

        try:
            return handler.send(self.config, message, title, data)
        except Exception as e:
            logger.exception("Notification handler %s raised", self.provider_type)
            return NotificationResult.error(str(e) or type(e).__name__, code="HANDLER_ERROR")

    def _log_notification(
        self,
        message: str,
        result: NotificationResult,
        *,
        rule_name: str,
        user_id: str,
    ) -> None:
        """Log notification attempt to database."""
        try:
            NotificationLog.objects.create(
                provider_type=self.provider_type,
                status=(
                    NotificationLog.Status.SUCCESS
                    if result.success
                    else NotificationLog.Status.FAILED
                ),
                message_preview=message[:200] if message else "",
                error_message=result.message if not result.success else "",
                error_code=result.error_code or "",
                rule_name=rule_name[:200],
                user_id=user_id[:255],
            )
        except Exception:
            # Don't let logging failures break notification sending
            logger.exception("Failed to log notification")


# Singleton instance for convenience
_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Get the singleton dispatcher instance."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher.from_settings()
    return _dispatcher


def reset_dispatcher() -> None:
    global _dispatcher
    _dispatcher = None
