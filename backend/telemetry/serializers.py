from __future__ import annotations

from rest_framework import serializers

from telemetry.models import TelemetryEvent


class TelemetryEventSerializer(serializers.ModelSerializer):
    device_id = serializers.CharField(read_only=True)

    class Meta:
        model = TelemetryEvent
        fields = [
            "id",
            "device_id",
            "timestamp",
            "message_type",
            "value",
            "unit",
            "additional_data",
            "received_at",
        ]
        read_only_fields = fields
