from __future__ import annotations

from django.urls import include, path

urlpatterns = [
    path("api/devices/", include("devices.urls")),
    path("api/telemetry/", include("telemetry.urls")),
    path("api/commands/", include("commands.urls")),
    path("api/automation/", include("automation.urls")),
    path("api/realtime/", include("realtime.urls")),
    path("api/transport/mqtt/", include("transports_mqtt.urls")),
]
