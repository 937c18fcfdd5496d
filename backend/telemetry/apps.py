from __future__ import annotations

from django.apps import AppConfig


class TelemetryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "telemetry"
    verbose_name = "Telemetry"

    def ready(self) -> None:
        """Subscribe to device telemetry on the MQTT transport (skipped for tests/migrations)."""
        from config.startup import runtime_side_effects_enabled

        if not runtime_side_effects_enabled():
            return

        from telemetry import runtime

        runtime.initialize()
