from __future__ import annotations

import json
import logging
import threading

from django.conf import settings

from config.db_connections import maybe_close_old_connections
from commands.models import CommandStatus
from commands.use_cases import CommandNotFound, InvalidCommandReport, report_command_result
from transports_mqtt.manager import mqtt_connection_manager
from transports_mqtt.topics import device_id_from_topic

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_initialized = False


def ack_topic() -> str:
    return str((getattr(settings, "DEVICE_TRANSPORT", None) or {}).get("command_ack_topic") or "devices/+/commands/ack")


def parse_ack(body: object) -> tuple[str, str, str] | None:
    """
    Accept `{commandId, status, error?}` or the simulator shape `{commandId, success, message?}`.

    Returns (command_id, status, error) or None when the message is not an acknowledgement.
    """
    if not isinstance(body, dict):
        return None
    command_id = str(body.get("commandId") or body.get("command_id") or "").strip()
    if not command_id:
        return None

    status = str(body.get("status") or "").strip().lower()
    if not status and isinstance(body.get("success"), bool):
        status = CommandStatus.COMPLETED if body["success"] else CommandStatus.FAILED
    error = body.get("error") or ("" if status == CommandStatus.COMPLETED else body.get("message")) or ""
    return command_id, status, str(error)


def initialize() -> None:
    global _initialized
    with _init_lock:
        if _initialized:
            return
        qos = int((getattr(settings, "DEVICE_TRANSPORT", None) or {}).get("qos") or 0)
        mqtt_connection_manager.subscribe(topic=ack_topic(), qos=qos, callback=handle_ack_message)
        logger.info("Command acknowledgements subscribed on %s", ack_topic())
        _initialized = True


def handle_ack_message(*, topic: str, payload: str) -> None:
    maybe_close_old_connections()
    try:
        try:
            body = json.loads(payload) if payload else None
        except ValueError as exc:
            logger.warning("Invalid JSON command ack on %s: %s", topic, exc)
            return
        ack = parse_ack(body)
        if ack is None:
            logger.debug("Ignoring non-ack message on %s", topic)
            return
        command_id, status, error = ack
        try:
            report_command_result(
                command_id,
                status=status,
                error=error,
                device_id=device_id_from_topic(topic_filter=ack_topic(), topic=topic),
            )
        except (CommandNotFound, InvalidCommandReport) as exc:
            logger.warning("Rejected command ack on %s: %s", topic, exc)
    finally:
        maybe_close_old_connections()
