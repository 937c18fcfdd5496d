"""
Best-effort fanout of named events to dashboard websocket subscribers.

Delivery is at-most-once over the Channels layer: a client that is not connected when a
message is published simply misses it. Publishing never raises; failures are logged and
reported through the boolean return value.
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Protocol

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

logger = logging.getLogger(__name__)

ALL_GROUP = "dashboard"

TELEMETRY_UPDATE = "telemetryUpdate"
DEVICE_STATUS_UPDATE = "deviceStatusUpdate"
AUTOMATION_RULE_EXECUTED = "automationRuleExecuted"

_GROUP_NAME_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")
_GROUP_NAME_MAX = 90

_sequence = itertools.count(1)


def _safe(value: str) -> str:
    return _GROUP_NAME_UNSAFE.sub("_", str(value))[:_GROUP_NAME_MAX]


def group_name_for(group: str) -> str:
    """Channels group for a named dashboard group (Channels only allows `[A-Za-z0-9_.-]`)."""
    return f"group.{_safe(group)}"


def user_group_name(user_id: str) -> str:
    return f"user.{_safe(user_id)}"


def build_message(*, event_name: str, payload: Any) -> dict[str, Any]:
    """Build the websocket message envelope shared by every dashboard event."""
    return {
        "type": event_name,
        "timestamp": timezone.now().isoformat(),
        "sequence": next(_sequence),
        "payload": payload,
    }


class BroadcastFanout(Protocol):
    def publish_to_all(self, event_name: str, payload: Any) -> bool:
        ...

    def publish_to_group(self, group: str, event_name: str, payload: Any) -> bool:
        ...

    def publish_to_user(self, user_id: str, event_name: str, payload: Any) -> bool:
        ...


class ChannelsBroadcastFanout:
    def publish_to_all(self, event_name: str, payload: Any) -> bool:
        return self._send(ALL_GROUP, build_message(event_name=event_name, payload=payload))

    def publish_to_group(self, group: str, event_name: str, payload: Any) -> bool:
        if not group:
            logger.debug("Skipping %s broadcast: empty group name", event_name)
            return False
        return self._send(group_name_for(group), build_message(event_name=event_name, payload=payload))

    def publish_to_user(self, user_id: str, event_name: str, payload: Any) -> bool:
        if not user_id:
            logger.debug("Skipping %s broadcast: empty user id", event_name)
            return False
        return self._send(user_group_name(user_id), build_message(event_name=event_name, payload=payload))

    def _send(self, group_name: str, message: dict[str, Any]) -> bool:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.debug("No channel layer configured, skipping %s broadcast", message.get("type"))
            return False
        try:
            async_to_sync(channel_layer.group_send)(group_name, {"type": "broadcast", "message": message})
        except Exception:
            logger.exception("Broadcast of %s to %s failed", message.get("type"), group_name)
            return False
        return True


default_fanout: BroadcastFanout = ChannelsBroadcastFanout()
