from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from automation.rules.action_handlers import ActionContext, Notifier, get_handler
from automation.rules.actions import MalformedAction, parse_action
from commands.gateways import CommandGateway
from config.domain_exceptions import DomainError

if TYPE_CHECKING:
    from automation.models import AutomationRule
    from telemetry.models import TelemetryEvent

logger = logging.getLogger(__name__)


class ActionExecutionFailure(DomainError):
    """One action of a fired rule failed; sibling actions still run."""

    def __init__(self, *, rule_id, action_type: str, error: str):
        self.rule_id = rule_id
        self.action_type = action_type
        self.error = error
        super().__init__(f"Action {action_type} of rule {rule_id} failed: {error}")


def execute_actions(
    *,
    rule: AutomationRule,
    actions: list[Any],
    event: TelemetryEvent | None,
    now: datetime,
    command_gateway: CommandGateway | None = None,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """Execute every action of a fired rule, returning an audit-friendly result payload."""
    ctx = ActionContext(
        rule=rule,
        event=event,
        now=now,
        command_gateway=command_gateway,
        notifier=notifier,
    )
    action_results: list[dict[str, Any]] = []
    error_messages: list[str] = []

    for raw in actions:
        action_type = str(raw.get("type")) if isinstance(raw, dict) else "invalid"
        try:
            action = parse_action(raw)
        except MalformedAction as exc:
            failure = ActionExecutionFailure(rule_id=rule.id, action_type=action_type, error=str(exc))
            logger.warning("%s", failure)
            action_results.append({"ok": False, "type": action_type, "error": str(exc)})
            error_messages.append(str(exc))
            continue

        handler = get_handler(action.type) if action is not None else None
        if handler is None:
            logger.info("Rule %s: ignoring unsupported action type %s", rule.id, action_type)
            action_results.append({"ok": False, "type": action_type, "error": "unsupported_action"})
            continue

        try:
            result, error = handler(action, ctx)
        except Exception as exc:
            failure = ActionExecutionFailure(rule_id=rule.id, action_type=action.type, error=str(exc))
            logger.exception("%s", failure)
            result, error = {"ok": False, "type": action.type, "error": str(exc)}, str(exc)
        else:
            if error:
                logger.warning(
                    "%s", ActionExecutionFailure(rule_id=rule.id, action_type=action.type, error=error)
                )

        action_results.append(result)
        if error:
            error_messages.append(error)

    return {
        "actions": action_results,
        "errors": error_messages,
        "timestamp": now.isoformat(),
    }
