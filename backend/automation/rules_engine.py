from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from django.utils import timezone

from config.domain_exceptions import DomainError
from realtime.fanout import AUTOMATION_RULE_EXECUTED, BroadcastFanout, default_fanout
from telemetry.models import TelemetryEvent

from .models import AutomationRule
from .rules.action_executor import execute_actions
from .rules.actions import normalize_action_list
from .rules.audit_log import log_rule_execution
from .rules.repositories import RuleStoreRepositories, default_rule_store_repositories
from .rules.triggers import first_matching_trigger, parse_triggers, trigger_as_dict

logger = logging.getLogger(__name__)


class RuleEvaluationFailure(DomainError):
    """Evaluating one rule against one event failed; other rules are unaffected."""

    def __init__(self, *, rule_id, error: str):
        self.rule_id = rule_id
        self.error = error
        super().__init__(f"Rule {rule_id} evaluation failed: {error}")


@dataclass(frozen=True)
class RuleRunResult:
    evaluated: int
    fired: int
    errors: int

    def as_dict(self) -> dict[str, int]:
        """Serialize run summary counters to a JSON-friendly dict."""
        return {
            "evaluated": self.evaluated,
            "fired": self.fired,
            "errors": self.errors,
        }


def _publish_rule_executed(fanout: BroadcastFanout, rule: AutomationRule, *, success: bool) -> None:
    try:
        fanout.publish_to_user(
            rule.user_id,
            AUTOMATION_RULE_EXECUTED,
            {"ruleId": str(rule.id), "ruleName": rule.name, "success": success},
        )
    except Exception:
        logger.exception("Failed to publish execution of rule %s", rule.id)


def evaluate_event(
    event: TelemetryEvent,
    *,
    now: datetime | None = None,
    repos: RuleStoreRepositories | None = None,
    execute_actions_func: Callable[..., dict[str, Any]] = execute_actions,
    log_execution_func: Callable[..., None] = log_rule_execution,
    fanout: BroadcastFanout | None = None,
) -> RuleRunResult:
    """
    Evaluate every active rule against one persisted telemetry event.

    Each rule fires at most once per event: on its first matching trigger all of its actions
    run, then its execution metadata is bumped atomically. Failures are contained per rule and
    never raised to the caller.
    """
    repos = repos or default_rule_store_repositories()
    fanout = fanout or default_fanout

    try:
        rules = repos.list_active_rules()
    except Exception:
        logger.exception("Could not load active rules for telemetry %s", event.pk)
        return RuleRunResult(evaluated=0, fired=0, errors=1)

    fired = 0
    errors = 0

    for rule in rules:
        try:
            trigger = first_matching_trigger(parse_triggers(rule.triggers), event)
            if trigger is None:
                continue

            fired_at = now or timezone.now()
            actions = normalize_action_list(rule.actions)
            logger.info("Rule %s (%s) matched telemetry %s", rule.name, rule.id, event.pk)
            result = execute_actions_func(rule=rule, actions=actions, event=event, now=fired_at)
            repos.record_execution(rule.id, fired_at)
            fired += 1

            log_execution_func(
                rule=rule,
                event=event,
                fired_at=fired_at,
                trigger=trigger_as_dict(trigger),
                actions=actions,
                result=result,
            )
            _publish_rule_executed(fanout, rule, success=not result.get("errors"))
        except Exception as exc:
            errors += 1
            failure = RuleEvaluationFailure(rule_id=rule.id, error=str(exc) or type(exc).__name__)
            logger.warning("%s", failure, exc_info=True)

    return RuleRunResult(evaluated=len(rules), fired=fired, errors=errors)
