from __future__ import annotations

from copy import deepcopy
from typing import Any

from django.conf import settings

from transports_mqtt.manager import MqttConnectionSettings

DEFAULT_MQTT_CONNECTION: dict[str, Any] = {
    "enabled": False,
    "host": "localhost",
    "port": 1883,
    "username": "",
    "password": "",
    "use_tls": False,
    "tls_insecure": False,
    "client_id": "telemetry-hub",
    "keepalive_seconds": 30,
}

_INT_FIELDS = ("port", "keepalive_seconds")
_BOOL_FIELDS = ("enabled", "use_tls", "tls_insecure")


def normalize_mqtt_connection(raw: object) -> MqttConnectionSettings:
    """Fill defaults, drop unknown keys and coerce field types."""
    base = deepcopy(DEFAULT_MQTT_CONNECTION)
    if isinstance(raw, dict):
        base.update({k: v for k, v in raw.items() if k in base})
    for key in _INT_FIELDS:
        try:
            base[key] = int(base[key])
        except (TypeError, ValueError):
            base[key] = DEFAULT_MQTT_CONNECTION[key]
    for key in _BOOL_FIELDS:
        base[key] = bool(base[key])
    for key in ("host", "username", "password", "client_id"):
        base[key] = str(base[key] or "").strip()
    return base  # type: ignore[return-value]


def mask_mqtt_connection(raw: object) -> dict[str, Any]:
    """Safe-for-API view of connection settings (password redacted)."""
    masked = dict(normalize_mqtt_connection(raw))
    masked["has_password"] = bool(masked.pop("password", ""))
    return masked


def get_mqtt_connection() -> MqttConnectionSettings:
    return normalize_mqtt_connection(getattr(settings, "MQTT_CONNECTION", None) or {})
