from __future__ import annotations

from django.urls import path

from telemetry import views

urlpatterns = [
    path("", views.TelemetryView.as_view(), name="telemetry"),
    path("latest/", views.LatestTelemetryView.as_view(), name="telemetry-latest"),
]
