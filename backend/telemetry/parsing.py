from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from telemetry.errors import InvalidTelemetryEvent


@dataclass(frozen=True)
class NormalizedTelemetry:
    device_id: str
    message_type: str
    timestamp: datetime
    value: float | None = None
    unit: str = ""
    additional_data: Any = None


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _coerce_timestamp(value: object, *, received_at: datetime) -> datetime:
    """ISO8601 string or datetime; naive values are taken as UTC. Missing -> receipt time."""
    if value is None or value == "":
        return received_at
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            parsed = None
        if parsed is None:
            raise InvalidTelemetryEvent(f"timestamp is not a valid ISO8601 datetime: {value!r}.")
    else:
        raise InvalidTelemetryEvent("timestamp must be an ISO8601 string.")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def _coerce_value(value: object) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidTelemetryEvent(f"value must be numeric: {value!r}.") from None
    if not math.isfinite(number):
        raise InvalidTelemetryEvent("value must be a finite number.")
    return number


def parse_raw_telemetry(raw: object, *, received_at: datetime | None = None) -> NormalizedTelemetry:
    """
    Normalize an inbound telemetry message.

    Accepts the dashboard/device shape (`deviceId`, `messageType`, `additionalData`) as well as
    snake_case keys. `deviceId` and `messageType` must be non-empty; a missing timestamp
    defaults to `received_at`.
    """
    if not isinstance(raw, Mapping):
        raise InvalidTelemetryEvent("Telemetry payload must be a JSON object.")
    received_at = received_at or timezone.now()

    device_id = str(_pick(raw, "deviceId", "device_id") or "").strip()
    if not device_id:
        raise InvalidTelemetryEvent("deviceId is required.")
    message_type = str(_pick(raw, "messageType", "message_type") or "").strip()
    if not message_type:
        raise InvalidTelemetryEvent("messageType is required.")

    unit = _pick(raw, "unit")
    return NormalizedTelemetry(
        device_id=device_id,
        message_type=message_type,
        timestamp=_coerce_timestamp(_pick(raw, "timestamp"), received_at=received_at),
        value=_coerce_value(_pick(raw, "value")),
        unit=str(unit).strip() if unit is not None else "",
        additional_data=_pick(raw, "additionalData", "additional_data"),
    )
