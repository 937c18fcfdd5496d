import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("provider_type", models.CharField(max_length=50)),
                (
                    "status",
                    models.CharField(choices=[("success", "Success"), ("failed", "Failed")], max_length=20),
                ),
                (
                    "message_preview",
                    models.CharField(help_text="Truncated message for audit purposes", max_length=200),
                ),
                ("error_message", models.TextField(blank=True)),
                ("error_code", models.CharField(blank=True, max_length=50)),
                ("rule_name", models.CharField(blank=True, max_length=200)),
                ("user_id", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user_id", "created_at"], name="notif_log_user_created_idx")],
            },
        ),
    ]
