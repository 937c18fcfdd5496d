"""
Action handler registry for automation rule actions.

Each handler module self-registers at import time via ``register()``.
The public API is ``get_handler(action_type)`` which returns the callable
or *None* for unknown types.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Protocol

from commands.gateways import CommandGateway

if TYPE_CHECKING:
    from automation.models import AutomationRule
    from notifications.handlers.base import NotificationResult
    from telemetry.models import TelemetryEvent


class Notifier(Protocol):
    def notify(
        self,
        *,
        message: str,
        title: str | None = None,
        data: dict | None = None,
        rule_name: str = "",
        user_id: str = "",
    ) -> NotificationResult:
        """Deliver a notification; failures are reported in the result."""

        ...


@dataclass(frozen=True)
class ActionContext:
    """Immutable bundle of dependencies available to every action handler."""

    rule: AutomationRule
    event: TelemetryEvent | None
    now: datetime
    command_gateway: CommandGateway | None
    notifier: Notifier | None


ActionHandler = Callable[[Any, ActionContext], tuple[dict[str, Any], str | None]]

_HANDLERS: dict[str, ActionHandler] = {}


def register(action_type: str, handler: ActionHandler) -> None:
    """Register a handler for *action_type*.  Called at module-import time."""
    if action_type in _HANDLERS:
        raise ValueError(f"Duplicate handler registration for {action_type!r}")
    _HANDLERS[action_type] = handler


def get_handler(action_type: str) -> ActionHandler | None:
    """Return the handler for *action_type*, or ``None`` if not registered."""
    return _HANDLERS.get(action_type)


# Import handler modules so they self-register.
from automation.rules.action_handlers import (  # noqa: E402, F401
    device_command,
    notification,
)
