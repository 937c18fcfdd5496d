"""
Notification handlers registry.

Each handler implements the NotificationHandler protocol for one delivery channel.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import NotificationHandler

# Loaded lazily so importing the registry stays cheap.
_HANDLER_CLASSES: dict[str, type["NotificationHandler"]] | None = None


def _load_handlers() -> dict[str, type["NotificationHandler"]]:
    from .log import LogHandler
    from .webhook import WebhookHandler

    return {
        LogHandler.provider_type: LogHandler,
        WebhookHandler.provider_type: WebhookHandler,
    }


def get_handler(provider_type: str) -> "NotificationHandler":
    """
    Get a handler instance for the given provider type.

    Raises:
        ValueError: If provider type is unknown
    """
    global _HANDLER_CLASSES
    if _HANDLER_CLASSES is None:
        _HANDLER_CLASSES = _load_handlers()

    handler_class = _HANDLER_CLASSES.get(provider_type)
    if handler_class is None:
        raise ValueError(f"Unknown provider type: {provider_type}")
    return handler_class()


def get_available_provider_types() -> list[str]:
    global _HANDLER_CLASSES
    if _HANDLER_CLASSES is None:
        _HANDLER_CLASSES = _load_handlers()
    return list(_HANDLER_CLASSES)
