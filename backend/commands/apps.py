from __future__ import annotations

from django.apps import AppConfig


class CommandsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "commands"
    verbose_name = "Device Commands"

    def ready(self) -> None:
        """Listen for device command acknowledgements (skipped for tests/migrations)."""
        from config.startup import runtime_side_effects_enabled

        if not runtime_side_effects_enabled():
            return

        from commands import runtime

        runtime.initialize()
