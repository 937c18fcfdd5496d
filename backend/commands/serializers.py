from __future__ import annotations

from rest_framework import serializers

from commands.models import CommandStatus, DeviceCommand


class DeviceCommandSerializer(serializers.ModelSerializer):
    device_id = serializers.CharField(read_only=True)
    rule_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = DeviceCommand
        fields = [
            "id",
            "device_id",
            "user_id",
            "command_type",
            "payload",
            "status",
            "source",
            "rule_id",
            "last_error",
            "created_at",
            "sent_at",
            "completed_at",
        ]
        read_only_fields = fields


class IssueCommandSerializer(serializers.Serializer):
    device_id = serializers.CharField(max_length=255)
    user_id = serializers.CharField(max_length=255)
    command_type = serializers.CharField(max_length=100)
    payload = serializers.DictField(required=False, default=dict)


class CommandReportSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[CommandStatus.COMPLETED, CommandStatus.FAILED])
    error = serializers.CharField(required=False, allow_blank=True, default="")
