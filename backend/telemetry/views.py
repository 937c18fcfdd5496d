from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from config.domain_exceptions import ValidationError
from config.pagination import EnvelopePagination
from telemetry.pipeline import ingest_telemetry
from telemetry.serializers import TelemetryEventSerializer
from telemetry.store import default_telemetry_store


def _required_device_id(request) -> str:
    device_id = (request.query_params.get("deviceId") or request.query_params.get("device_id") or "").strip()
    if not device_id:
        raise ValidationError("deviceId is required.")
    return device_id


def _hours(request) -> int:
    raw = request.query_params.get("hours")
    if raw in (None, ""):
        return int(getattr(settings, "TELEMETRY_QUERY_DEFAULT_HOURS", 24))
    try:
        hours = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("hours must be a positive integer.") from None
    if hours <= 0:
        raise ValidationError("hours must be a positive integer.")
    return hours


class TelemetryView(GenericAPIView):
    """
    GET  /api/telemetry/?deviceId=&messageType=&hours= - newest-first history (paginated).
    POST /api/telemetry/ - ingest one telemetry message.
    """

    pagination_class = EnvelopePagination

    def get(self, request):
        device_id = _required_device_id(request)
        since = timezone.now() - timedelta(hours=_hours(request))
        queryset = default_telemetry_store.query(
            device_id,
            since=since,
            message_type=(request.query_params.get("messageType") or request.query_params.get("message_type") or None),
        )
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(TelemetryEventSerializer(page, many=True).data)

    def post(self, request):
        event = ingest_telemetry(request.data)
        return Response(TelemetryEventSerializer(event).data, status=status.HTTP_202_ACCEPTED)


class LatestTelemetryView(APIView):
    """GET /api/telemetry/latest/?deviceId= - latest event per message type."""

    def get(self, request):
        device_id = _required_device_id(request)
        events = default_telemetry_store.latest_by_message_type(device_id)
        return Response(TelemetryEventSerializer(events, many=True).data)
