from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.utils import timezone

from commands.gateways import CommandGateway, DispatchRejected, default_command_gateway
from commands.lifecycle import TERMINAL_STATUSES, transition_command
from commands.models import CommandSource, CommandStatus, DeviceCommand
from config.domain_exceptions import NotFoundError, ValidationError
from devices.models import Device

if TYPE_CHECKING:
    from automation.models import AutomationRule

logger = logging.getLogger(__name__)

REPORTABLE_STATUSES = frozenset({CommandStatus.COMPLETED, CommandStatus.FAILED})


class CommandNotFound(NotFoundError):
    pass


class CommandTargetNotFound(NotFoundError):
    pass


class InvalidCommandReport(ValidationError):
    pass


def issue_command(
    *,
    device_id: str,
    user_id: str,
    command_type: str,
    payload: dict[str, Any] | None = None,
    source: str = CommandSource.USER,
    rule: AutomationRule | None = None,
    gateway: CommandGateway | None = None,
    now: datetime | None = None,
) -> DeviceCommand:
    """Create a pending command for a known device and try to hand it to the transport."""
    if not command_type:
        raise ValidationError("command_type is required.")
    if not Device.objects.filter(device_id=device_id).exists():
        raise CommandTargetNotFound(f"Device '{device_id}' not found.")

    command = DeviceCommand.objects.create(
        device_id=device_id,
        user_id=user_id or "",
        command_type=command_type,
        payload=dict(payload or {}),
        status=CommandStatus.PENDING,
        source=source,
        rule=rule,
    )
    return dispatch_command(command, gateway=gateway, now=now)


def dispatch_command(
    command: DeviceCommand,
    *,
    gateway: CommandGateway | None = None,
    now: datetime | None = None,
) -> DeviceCommand:
    """
    Deliver a pending command.

    accepted -> `sent`; rejected -> `failed` (`DispatchRejected`); a transport exception leaves
    the command `pending` for the transport's own redelivery.
    """
    gateway = gateway or default_command_gateway
    try:
        result = gateway.dispatch(
            command_id=str(command.id),
            device_id=command.device_id,
            command_type=command.command_type,
            parameters=command.payload or {},
        )
    except Exception as exc:
        logger.warning("Delivery of command %s to %s failed; left pending: %s", command.id, command.device_id, exc)
        command.refresh_from_db()
        return command

    if result.accepted:
        transition_command(command.id, CommandStatus.SENT, now=now)
    else:
        rejection = DispatchRejected(result.reason or "rejected by transport")
        logger.warning("Command %s to %s: %s", command.id, command.device_id, rejection)
        transition_command(command.id, CommandStatus.FAILED, now=now, error=rejection.error)
    command.refresh_from_db()
    return command


def report_command_result(
    command_id,
    *,
    status: str,
    error: str = "",
    device_id: str | None = None,
    now: datetime | None = None,
) -> tuple[DeviceCommand, bool]:
    """
    Apply a completion report from the device transport.

    Returns the (refreshed) command and whether the report changed its state. Reports that
    would move the command backwards or that target a terminal command are ignored.
    When `device_id` is given (the reporting device), reports for another device's command
    are ignored too.
    """
    if status not in REPORTABLE_STATUSES:
        raise InvalidCommandReport(f"status must be one of: {', '.join(sorted(REPORTABLE_STATUSES))}.")
    try:
        command_uuid = command_id if isinstance(command_id, uuid.UUID) else uuid.UUID(str(command_id))
    except ValueError:
        raise CommandNotFound(f"Command '{command_id}' not found.") from None
    command = DeviceCommand.objects.filter(pk=command_uuid).first()
    if command is None:
        raise CommandNotFound(f"Command '{command_id}' not found.")

    if device_id is not None and command.device_id != device_id:
        logger.warning(
            "Ignoring %s report for command %s from device %s (addressed to %s)",
            status,
            command_id,
            device_id,
            command.device_id,
        )
        return command, False

    if command.status in TERMINAL_STATUSES:
        logger.info("Ignoring %s report for command %s already %s", status, command_id, command.status)
        return command, False

    applied = transition_command(command.id, status, now=now or timezone.now(), error=error)
    command.refresh_from_db()
    return command, applied
