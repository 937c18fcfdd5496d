from __future__ import annotations

import atexit

from django.apps import AppConfig


class AutomationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "automation"
    verbose_name = "Automation Rules"

    def ready(self) -> None:
        """Release the evaluator worker pool at interpreter exit."""
        from automation.dispatcher import shutdown_dispatcher

        atexit.register(shutdown_dispatcher)
