from __future__ import annotations

from django.db import models


class DeviceType(models.TextChoices):
    SENSOR = "sensor", "Sensor"
    ACTUATOR = "actuator", "Actuator"
    CONTROLLER = "controller", "Controller"


class Device(models.Model):
    device_id = models.CharField(max_length=255, primary_key=True)
    name = models.CharField(max_length=255)
    device_type = models.CharField(max_length=32, choices=DeviceType.choices)
    location = models.CharField(max_length=255, blank=True)
    owner_id = models.CharField(max_length=255, db_index=True)

    is_online = models.BooleanField(default=False)
    last_seen = models.DateTimeField(null=True, blank=True)

    properties = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "device_id"]
        indexes = [
            models.Index(fields=["owner_id", "is_online"], name="devices_owner_online_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.device_id})"
