from __future__ import annotations

from typing import Any

from automation.rules.action_handlers import ActionContext, register
from automation.rules.actions import NOTIFICATION, NotificationAction
from notifications.dispatcher import get_dispatcher as get_notification_dispatcher


def _event_data(ctx: ActionContext) -> dict[str, Any]:
    data: dict[str, Any] = {"ruleId": str(ctx.rule.id)}
    if ctx.event is not None:
        data.update(
            {
                "deviceId": ctx.event.device_id,
                "messageType": ctx.event.message_type,
                "value": ctx.event.value,
            }
        )
    return data


def execute(action: NotificationAction, ctx: ActionContext) -> tuple[dict[str, Any], str | None]:
    notifier = ctx.notifier or get_notification_dispatcher()
    result = notifier.notify(
        message=action.message,
        title=action.title,
        data=_event_data(ctx),
        rule_name=ctx.rule.name,
        user_id=ctx.rule.user_id,
    )
    if result.success:
        return {"ok": True, "type": NOTIFICATION}, None
    return {
        "ok": False,
        "type": NOTIFICATION,
        "error": result.message,
        "error_code": result.error_code,
    }, result.message


register(NOTIFICATION, execute)
