"""
Trigger conditions for automation rules.

Triggers are stored as tagged JSON objects and parsed into frozen dataclasses:

- `{"type": "sensor_threshold", "device", "messageType", "operator", "threshold"}`
- `{"type": "device_status", "device", "status"}`

Unknown tags parse to `None` and never match. A known tag with missing fields raises
`MalformedTrigger`.
"""
from __future__ import annotations

import math
import operator as op
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Union

from config.domain_exceptions import ValidationError

SENSOR_THRESHOLD = "sensor_threshold"
DEVICE_STATUS = "device_status"

OPERATORS: dict[str, Callable[[float, float], bool]] = {
    ">": op.gt,
    "<": op.lt,
    ">=": op.ge,
    "<=": op.le,
    "==": op.eq,
}


class MalformedTrigger(ValidationError):
    pass


class TelemetryLike(Protocol):
    device_id: str
    message_type: str
    value: Any


@dataclass(frozen=True)
class SensorThresholdTrigger:
    device: str
    message_type: str
    operator: str
    threshold: Any

    type = SENSOR_THRESHOLD


@dataclass(frozen=True)
class DeviceStatusTrigger:
    device: str
    status: str

    type = DEVICE_STATUS


Trigger = Union[SensorThresholdTrigger, DeviceStatusTrigger]


def _required_str(raw: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    raise MalformedTrigger(f"{raw.get('type')} trigger is missing '{keys[0]}'.")


def parse_trigger(raw: Any) -> Trigger | None:
    """Parse one stored trigger object; returns None for unknown tags."""
    if not isinstance(raw, dict):
        raise MalformedTrigger("Trigger must be an object.")
    trigger_type = raw.get("type")
    if trigger_type == SENSOR_THRESHOLD:
        if "threshold" not in raw:
            raise MalformedTrigger("sensor_threshold trigger is missing 'threshold'.")
        return SensorThresholdTrigger(
            device=_required_str(raw, "device"),
            message_type=_required_str(raw, "messageType", "message_type"),
            # An unrecognized operator is kept and simply never matches.
            operator=str(raw.get("operator") or ""),
            threshold=raw.get("threshold"),
        )
    if trigger_type == DEVICE_STATUS:
        return DeviceStatusTrigger(
            device=_required_str(raw, "device"),
            status=_required_str(raw, "status"),
        )
    return None


def parse_triggers(raw: Any) -> list[Trigger | None]:
    """
    Parse a rule's stored trigger set, preserving declaration order.

    Accepts a list, or the legacy `{"triggers": [...]}` wrapper.
    """
    if isinstance(raw, dict) and "triggers" in raw:
        raw = raw.get("triggers")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedTrigger("Trigger set must be a list.")
    return [parse_trigger(item) for item in raw]


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def matches(trigger: Trigger | None, event: TelemetryLike) -> bool:
    """Pure, side-effect free match of one trigger against one telemetry event."""
    if isinstance(trigger, SensorThresholdTrigger):
        if trigger.device != event.device_id or trigger.message_type != event.message_type:
            return False
        compare = OPERATORS.get(trigger.operator)
        if compare is None:
            return False
        value = _as_float(event.value)
        threshold = _as_float(trigger.threshold)
        if value is None or threshold is None:
            return False
        return compare(value, threshold)

    if isinstance(trigger, DeviceStatusTrigger):
        # Status is compared against the message type tag.
        return trigger.device == event.device_id and trigger.status == event.message_type

    return False


def first_matching_trigger(triggers: list[Trigger | None], event: TelemetryLike) -> Trigger | None:
    for trigger in triggers:
        if matches(trigger, event):
            return trigger
    return None


def trigger_as_dict(trigger: Trigger) -> dict[str, Any]:
    if isinstance(trigger, SensorThresholdTrigger):
        return {
            "type": SENSOR_THRESHOLD,
            "device": trigger.device,
            "messageType": trigger.message_type,
            "operator": trigger.operator,
            "threshold": trigger.threshold,
        }
    return {"type": DEVICE_STATUS, "device": trigger.device, "status": trigger.status}
