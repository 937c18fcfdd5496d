"""
Base notification handler protocol and result types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class NotificationResult:
    """Result of a notification send attempt."""

    success: bool
    message: str
    error_code: str | None = None
    provider_response: dict | None = None

    @classmethod
    def ok(cls, message: str = "Sent successfully", response: dict | None = None) -> "NotificationResult":
        return cls(success=True, message=message, provider_response=response)

    @classmethod
    def error(cls, message: str, code: str = "ERROR", response: dict | None = None) -> "NotificationResult":
        return cls(success=False, message=message, error_code=code, provider_response=response)


class NotificationHandler(ABC):
    """
    A notification delivery channel.

    Subclasses set `provider_type` and implement `validate_config()` and `send()`.
    `send()` reports failures through `NotificationResult.error` instead of raising.
    """

    provider_type: str = ""

    @abstractmethod
    def validate_config(self, config: dict) -> list[str]:
        """Return validation error messages (empty when the config is usable)."""

    @abstractmethod
    def send(
        self,
        config: dict,
        message: str,
        title: str | None = None,
        data: dict | None = None,
    ) -> NotificationResult:
        """Deliver one notification."""
