from __future__ import annotations

import json
import logging
import threading

from django.conf import settings

from config.db_connections import maybe_close_old_connections
from telemetry.errors import DeviceNotFound, InvalidTelemetryEvent, PersistenceFailure
from telemetry.pipeline import get_pipeline
from transports_mqtt.manager import mqtt_connection_manager
from transports_mqtt.topics import device_id_from_topic

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_initialized = False


def telemetry_topic() -> str:
    return str((getattr(settings, "DEVICE_TRANSPORT", None) or {}).get("telemetry_topic") or "devices/+/telemetry")


def initialize() -> None:
    """Register the telemetry subscription on the MQTT transport (safe to call multiple times)."""
    global _initialized
    with _init_lock:
        if _initialized:
            return
        topic = telemetry_topic()
        qos = int((getattr(settings, "DEVICE_TRANSPORT", None) or {}).get("qos") or 0)
        mqtt_connection_manager.subscribe(topic=topic, qos=qos, callback=handle_telemetry_message)
        logger.info("Telemetry ingestion subscribed to %s", topic)
        _initialized = True


def handle_telemetry_message(*, topic: str, payload: str) -> None:
    """Per-message MQTT callback: decode, attribute to the topic's device, and ingest."""
    maybe_close_old_connections()
    try:
        try:
            body = json.loads(payload) if payload else None
        except ValueError as exc:
            logger.warning("Invalid JSON telemetry on %s: %s", topic, exc)
            return
        if not isinstance(body, dict):
            logger.warning("Ignoring non-object telemetry payload on %s", topic)
            return

        device_id = device_id_from_topic(topic_filter=telemetry_topic(), topic=topic)
        if device_id:
            # The topic is the transport's authenticated identity; it wins over the body.
            body = {**body, "deviceId": device_id}

        try:
            get_pipeline().ingest(body)
        except DeviceNotFound as exc:
            logger.info("Dropped telemetry on %s: %s", topic, exc)
        except InvalidTelemetryEvent as exc:
            logger.warning("Rejected telemetry on %s: %s", topic, exc)
        except PersistenceFailure:
            logger.error("Telemetry on %s was not persisted", topic)
    finally:
        maybe_close_old_connections()
