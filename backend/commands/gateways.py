from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol

from django.conf import settings

from config.domain_exceptions import GatewayError
from transports_mqtt.manager import MqttConnectionManager, mqtt_connection_manager

GATEWAY_NAME = "DeviceCommand"


class DispatchRejected(GatewayError):
    """The transport refused the command before handoff; the command is marked failed."""

    gateway_name = GATEWAY_NAME

    def __init__(self, reason: str):
        self.error = reason
        super().__init__(f"Command dispatch rejected: {reason}")


@dataclass(frozen=True)
class DeliveryResult:
    accepted: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> DeliveryResult:
        return cls(accepted=True)

    @classmethod
    def rejected(cls, reason: str) -> DeliveryResult:
        return cls(accepted=False, reason=reason)


class CommandGateway(Protocol):
    def dispatch(
        self,
        *,
        command_id: str,
        device_id: str,
        command_type: str,
        parameters: dict[str, Any],
    ) -> DeliveryResult:
        """
        Hand a command to the device transport.

        Returns `rejected` when the transport refuses the command outright; raises when the
        handoff itself fails (the command then stays pending).
        """
        ...


def _transport_settings() -> dict[str, Any]:
    return getattr(settings, "DEVICE_TRANSPORT", None) or {}


@dataclass(frozen=True)
class MqttCommandGateway:
    manager: MqttConnectionManager = mqtt_connection_manager

    def dispatch(
        self,
        *,
        command_id: str,
        device_id: str,
        command_type: str,
        parameters: dict[str, Any],
    ) -> DeliveryResult:
        status = self.manager.get_status()
        if not status.enabled or not status.configured:
            return DeliveryResult.rejected("MQTT device transport is not configured.")

        transport = _transport_settings()
        template = str(transport.get("command_topic_template") or "devices/{device_id}/commands")
        topic = template.format(device_id=device_id)
        payload = json.dumps({"commandId": command_id, "command": command_type, "parameters": parameters or {}})
        self.manager.publish(topic=topic, payload=payload, qos=int(transport.get("qos") or 0))
        return DeliveryResult.ok()


default_command_gateway: CommandGateway = MqttCommandGateway()
