"""
Actions run when an automation rule fires.

- `{"type": "device_command", "device", "command", "parameters"?}`
- `{"type": "notification", "message", "title"?}`

Unknown tags parse to `None`; the executor records them as unsupported and moves on.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from config.domain_exceptions import ValidationError

DEVICE_COMMAND = "device_command"
NOTIFICATION = "notification"

ACTION_TYPES = frozenset({DEVICE_COMMAND, NOTIFICATION})


class MalformedAction(ValidationError):
    pass


@dataclass(frozen=True)
class DeviceCommandAction:
    device: str
    command: str
    parameters: dict[str, Any] = field(default_factory=dict)

    type = DEVICE_COMMAND


@dataclass(frozen=True)
class NotificationAction:
    message: str
    title: str | None = None

    type = NOTIFICATION


Action = Union[DeviceCommandAction, NotificationAction]


def parse_action(raw: Any) -> Action | None:
    if not isinstance(raw, dict):
        raise MalformedAction("invalid_action")
    action_type = raw.get("type")

    if action_type == DEVICE_COMMAND:
        device = raw.get("device")
        command = raw.get("command")
        parameters = raw.get("parameters")
        if not isinstance(device, str) or not device:
            raise MalformedAction("missing_device")
        if not isinstance(command, str) or not command:
            raise MalformedAction("missing_command")
        if parameters is not None and not isinstance(parameters, dict):
            raise MalformedAction("invalid_parameters")
        return DeviceCommandAction(device=device, command=command, parameters=dict(parameters or {}))

    if action_type == NOTIFICATION:
        message = raw.get("message")
        title = raw.get("title")
        if not isinstance(message, str) or not message:
            raise MalformedAction("missing_message")
        return NotificationAction(message=message, title=title if isinstance(title, str) and title else None)

    return None


def normalize_action_list(raw: Any) -> list[Any]:
    """Return the stored action list, accepting the legacy `{"actions": [...]}` wrapper."""
    if isinstance(raw, dict) and "actions" in raw:
        raw = raw.get("actions")
    return raw if isinstance(raw, list) else []
