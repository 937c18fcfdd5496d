from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from django.db.models import DateTimeField, F, Value
from django.db.models.functions import Coalesce, Greatest

from automation.models import AutomationRule


@dataclass(frozen=True)
class RuleStoreRepositories:
    list_active_rules: Callable[[], list[AutomationRule]]
    record_execution: Callable[[object, datetime], bool]


def default_rule_store_repositories() -> RuleStoreRepositories:
    """Build the default repositories adapter used by the rules engine orchestration."""

    def _list_active_rules() -> list[AutomationRule]:
        """Return active rules, read fresh on every call."""
        return list(AutomationRule.objects.filter(is_active=True).order_by("created_at", "id"))

    def _record_execution(rule_id, executed_at: datetime) -> bool:
        """
        Bump execution metadata in a single UPDATE.

        `execution_count` is incremented in the database and `last_executed` only moves
        forward, so concurrent firings of the same rule neither lose counts nor regress time.
        """
        executed = Value(executed_at, output_field=DateTimeField())
        updated = AutomationRule.objects.filter(pk=rule_id).update(
            execution_count=F("execution_count") + 1,
            last_executed=Greatest(Coalesce("last_executed", executed), executed),
        )
        return updated == 1

    return RuleStoreRepositories(
        list_active_rules=_list_active_rules,
        record_execution=_record_execution,
    )
