from __future__ import annotations

import uuid

from django.db import models


class AutomationRule(models.Model):
    """
    A user-owned rule: when any trigger matches an incoming telemetry event, run all actions.

    `triggers` and `actions` hold tagged JSON objects (see `automation.rules.triggers` and
    `automation.rules.actions`). `schedule` is stored for authoring tools but never evaluated.
    Execution metadata is only written through `RuleStoreRepositories.record_execution`.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=255, db_index=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    triggers = models.JSONField(default=list, blank=True)
    actions = models.JSONField(default=list, blank=True)
    schedule = models.JSONField(null=True, blank=True)
    last_executed = models.DateTimeField(null=True, blank=True)
    execution_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["is_active", "user_id"], name="rules_active_user_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class RuleExecutionLog(models.Model):
    rule = models.ForeignKey(AutomationRule, on_delete=models.CASCADE, related_name="execution_logs")
    telemetry_event = models.ForeignKey(
        "telemetry.TelemetryEvent",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="rule_executions",
    )
    fired_at = models.DateTimeField()
    trigger = models.JSONField(default=dict, blank=True)
    actions = models.JSONField(default=list, blank=True)
    result = models.JSONField(default=dict, blank=True)
    success = models.BooleanField(default=True)
    error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-fired_at", "-id"]
        indexes = [
            models.Index(fields=["rule", "fired_at"], name="rule_exec_rule_fired_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.rule_id} @ {self.fired_at}"
