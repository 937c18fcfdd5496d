from __future__ import annotations

from django.urls import path

from commands import views

urlpatterns = [
    path("", views.CommandListView.as_view(), name="command-list"),
    path("<uuid:command_id>/", views.CommandDetailView.as_view(), name="command-detail"),
    path("<uuid:command_id>/report/", views.CommandReportView.as_view(), name="command-report"),
]
