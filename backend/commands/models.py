from __future__ import annotations

import uuid

from django.db import models


class CommandStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SENT = "sent", "Sent"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class CommandSource(models.TextChoices):
    USER = "user", "User"
    AUTOMATION = "automation", "Automation"


class DeviceCommand(models.Model):
    """
    A command addressed to one device.

    `status` only moves forward (see `commands.lifecycle`); rows are never edited otherwise.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    device = models.ForeignKey("devices.Device", on_delete=models.CASCADE, related_name="commands")
    user_id = models.CharField(max_length=255)
    command_type = models.CharField(max_length=100)
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=CommandStatus.choices, default=CommandStatus.PENDING)
    source = models.CharField(max_length=20, choices=CommandSource.choices, default=CommandSource.USER)
    rule = models.ForeignKey(
        "automation.AutomationRule",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="commands",
    )
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["device", "status"], name="commands_device_status_idx"),
            models.Index(fields=["user_id", "created_at"], name="commands_user_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.command_type} -> {self.device_id} ({self.status})"
