from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from automation.models import AutomationRule, RuleExecutionLog

if TYPE_CHECKING:
    from telemetry.models import TelemetryEvent

logger = logging.getLogger(__name__)


def log_rule_execution(
    *,
    rule: AutomationRule,
    event: TelemetryEvent | None,
    fired_at,
    trigger: dict[str, Any],
    actions: list[Any],
    result: dict[str, Any],
    error: str = "",
) -> None:
    """Persist an execution log row for a rule firing (best-effort)."""
    errors = result.get("errors") if isinstance(result, dict) else None
    try:
        RuleExecutionLog.objects.create(
            rule=rule,
            telemetry_event=event if event is not None and event.pk else None,
            fired_at=fired_at,
            trigger=trigger,
            actions=actions,
            result=result,
            success=not error and not errors,
            error=error or "; ".join(str(e) for e in errors or []),
        )
    except Exception:
        logger.exception("Failed to write execution log for rule %s", rule.id)
