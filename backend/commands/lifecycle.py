"""
Forward-only command state machine.

    pending -> sent -> completed
    pending -> sent -> failed
    pending -> completed | failed

A device can ack before `dispatch_command` records `sent` (publish happens first), so a
report may finish a command that is still `pending`.

`completed` and `failed` are terminal. Every transition is one conditional UPDATE
("only if the current status is one of ..."), so concurrent reports race safely and the
first terminal transition wins.
"""

from __future__ import annotations

import logging
from datetime import datetime

from django.utils import timezone

from commands.models import CommandStatus, DeviceCommand
from config.domain_exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_SOURCES: dict[str, frozenset[str]] = {
    CommandStatus.SENT: frozenset({CommandStatus.PENDING}),
    CommandStatus.COMPLETED: frozenset({CommandStatus.PENDING, CommandStatus.SENT}),
    CommandStatus.FAILED: frozenset({CommandStatus.PENDING, CommandStatus.SENT}),
}

TERMINAL_STATUSES = frozenset({CommandStatus.COMPLETED, CommandStatus.FAILED})


class InvalidCommandTransition(ValidationError):
    pass


def can_transition(from_status: str, to_status: str) -> bool:
    return from_status in ALLOWED_SOURCES.get(to_status, frozenset())


def transition_command(
    command_id,
    to_status: str,
    *,
    now: datetime | None = None,
    error: str = "",
) -> bool:
    """Apply `to_status` if the command currently sits in an allowed source state."""
    sources = ALLOWED_SOURCES.get(to_status)
    if sources is None:
        raise InvalidCommandTransition(f"Commands cannot be moved to '{to_status}'.")

    now = now or timezone.now()
    changes: dict[str, object] = {"status": to_status}
    if to_status == CommandStatus.SENT:
        changes["sent_at"] = now
    else:
        changes["completed_at"] = now
    if error:
        changes["last_error"] = error[:2000]

    updated = DeviceCommand.objects.filter(pk=command_id, status__in=list(sources)).update(**changes)
    if updated:
        logger.info("Command %s -> %s", command_id, to_status)
    else:
        logger.info("Command %s: ignored transition to %s (not in %s)", command_id, to_status, sorted(sources))
    return updated == 1
