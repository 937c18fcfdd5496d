from __future__ import annotations

from rest_framework import serializers

from devices.models import Device, DeviceType


class DeviceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Device
        fields = [
            "device_id",
            "name",
            "device_type",
            "location",
            "owner_id",
            "is_online",
            "last_seen",
            "properties",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DeviceRegistrationSerializer(serializers.Serializer):
    device_id = serializers.CharField(max_length=255)
    name = serializers.CharField(max_length=255)
    device_type = serializers.ChoiceField(choices=DeviceType.choices)
    owner_id = serializers.CharField(max_length=255)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    properties = serializers.DictField(required=False, default=dict)
