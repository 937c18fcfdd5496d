import uuid

from django.db import models


class NotificationLog(models.Model):
    """Audit log for notification attempts made by automation rules."""

    class Status(models.TextChoices):
        SUCCESS = "success", "Success"
        FAILED = "failed", "Failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider_type = models.CharField(max_length=50)
    status = models.CharField(max_length=20, choices=Status.choices)
    message_preview = models.CharField(max_length=200, help_text="Truncated message for audit purposes")
    error_message = models.TextField(blank=True)
    error_code = models.CharField(max_length=50, blank=True)
    rule_name = models.CharField(max_length=200, blank=True)
    user_id = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "created_at"], name="notif_log_user_created_idx"),
        ]

    def __str__(self):
        return f"{self.provider_type} {self.status} @ {self.created_at}"
