from __future__ import annotations

from typing import Any

from automation.rules.action_handlers import ActionContext, register
from automation.rules.actions import DEVICE_COMMAND, DeviceCommandAction
from commands.models import CommandSource, CommandStatus
from commands.use_cases import issue_command


def execute(action: DeviceCommandAction, ctx: ActionContext) -> tuple[dict[str, Any], str | None]:
    command = issue_command(
        device_id=action.device,
        user_id=ctx.rule.user_id,
        command_type=action.command,
        payload=action.parameters,
        source=CommandSource.AUTOMATION,
        rule=ctx.rule,
        gateway=ctx.command_gateway,
        now=ctx.now,
    )
    result = {
        "ok": command.status != CommandStatus.FAILED,
        "type": DEVICE_COMMAND,
        "device": action.device,
        "command": action.command,
        "command_id": str(command.id),
        "status": command.status,
    }
    if command.status == CommandStatus.FAILED:
        result["error"] = command.last_error
        return result, command.last_error or "dispatch_rejected"
    return result, None


register(DEVICE_COMMAND, execute)
