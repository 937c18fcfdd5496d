from __future__ import annotations

from rest_framework import serializers

from automation.models import AutomationRule


class AutomationRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = AutomationRule
        fields = [
            "id",
            "user_id",
            "name",
            "description",
            "is_active",
            "triggers",
            "actions",
            "schedule",
            "last_executed",
            "execution_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
