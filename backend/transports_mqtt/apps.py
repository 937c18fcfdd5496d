from __future__ import annotations

from django.apps import AppConfig


class TransportsMqttConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "transports_mqtt"

    def ready(self) -> None:
        """Connect the process-wide MQTT client at startup (skipped for tests/migrations)."""
        from config.startup import runtime_side_effects_enabled

        if not runtime_side_effects_enabled():
            return

        from transports_mqtt.config import get_mqtt_connection
        from transports_mqtt.manager import mqtt_connection_manager

        mqtt_connection_manager.apply_settings(settings=get_mqtt_connection())
