from __future__ import annotations

from rest_framework.response import Response
from rest_framework.views import APIView

from automation.dispatcher import get_dispatcher_status
from automation.models import AutomationRule
from automation.serializers import AutomationRuleSerializer


class RuleListView(APIView):
    """GET /api/automation/rules/?userId=&active= - rules with execution metadata (read-only)."""

    def get(self, request):
        queryset = AutomationRule.objects.all()
        user_id = request.query_params.get("userId") or request.query_params.get("user_id")
        if user_id:
            queryset = queryset.filter(user_id=user_id)
        active = (request.query_params.get("active") or "").strip().lower()
        if active in ("true", "1"):
            queryset = queryset.filter(is_active=True)
        elif active in ("false", "0"):
            queryset = queryset.filter(is_active=False)
        return Response(AutomationRuleSerializer(queryset, many=True).data)


class EvaluatorStatusView(APIView):
    def get(self, request):
        return Response(get_dispatcher_status())
