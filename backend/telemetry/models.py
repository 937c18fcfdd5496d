from __future__ import annotations

from django.db import models
from django.utils import timezone


class TelemetryEvent(models.Model):
    """One timestamped reading/message from a device. Rows are never updated."""

    device = models.ForeignKey("devices.Device", on_delete=models.CASCADE, related_name="telemetry")
    timestamp = models.DateTimeField()
    message_type = models.CharField(max_length=100)
    value = models.FloatField(null=True, blank=True)
    unit = models.CharField(max_length=50, blank=True)
    additional_data = models.JSONField(null=True, blank=True)
    received_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["device", "timestamp"], name="telemetry_device_ts_idx"),
            models.Index(fields=["device", "message_type", "timestamp"], name="telemetry_device_type_ts_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.device_id}:{self.message_type}@{self.timestamp.isoformat()}"
