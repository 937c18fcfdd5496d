from __future__ import annotations

from django.urls import path

from automation import views

urlpatterns = [
    path("rules/", views.RuleListView.as_view(), name="automation-rules"),
    path("evaluator/status/", views.EvaluatorStatusView.as_view(), name="automation-evaluator-status"),
]
