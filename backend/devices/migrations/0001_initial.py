from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Device",
            fields=[
                ("device_id", models.CharField(max_length=255, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                (
                    "device_type",
                    models.CharField(
                        choices=[("sensor", "Sensor"), ("actuator", "Actuator"), ("controller", "Controller")],
                        max_length=32,
                    ),
                ),
                ("location", models.CharField(blank=True, max_length=255)),
                ("owner_id", models.CharField(db_index=True, max_length=255)),
                ("is_online", models.BooleanField(default=False)),
                ("last_seen", models.DateTimeField(blank=True, null=True)),
                ("properties", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name", "device_id"],
                "indexes": [models.Index(fields=["owner_id", "is_online"], name="devices_owner_online_idx")],
            },
        ),
    ]
