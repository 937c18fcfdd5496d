from __future__ import annotations

from datetime import datetime

from django.db.models import F, OuterRef, QuerySet, Subquery
from django.utils import timezone

from telemetry.models import TelemetryEvent
from telemetry.parsing import NormalizedTelemetry


def telemetry_update_payload(event: TelemetryEvent) -> dict[str, object]:
    """Shape used for the `telemetryUpdate` broadcast."""
    return {
        "deviceId": event.device_id,
        "messageType": event.message_type,
        "value": event.value,
        "unit": event.unit or None,
        "timestamp": event.timestamp.isoformat(),
        "additionalData": event.additional_data,
    }


class TelemetryStore:
    """Append-only telemetry persistence; rows are ordered per device by event timestamp."""

    def append(self, telemetry: NormalizedTelemetry) -> TelemetryEvent:
        return TelemetryEvent.objects.create(
            device_id=telemetry.device_id,
            timestamp=telemetry.timestamp,
            message_type=telemetry.message_type,
            value=telemetry.value,
            unit=telemetry.unit,
            additional_data=telemetry.additional_data,
            received_at=timezone.now(),
        )

    def query(
        self,
        device_id: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        message_type: str | None = None,
    ) -> QuerySet[TelemetryEvent]:
        queryset = TelemetryEvent.objects.filter(device_id=device_id)
        if message_type:
            queryset = queryset.filter(message_type=message_type)
        if since is not None:
            queryset = queryset.filter(timestamp__gte=since)
        if until is not None:
            queryset = queryset.filter(timestamp__lte=until)
        return queryset.order_by("-timestamp", "-id")

    def latest_by_message_type(self, device_id: str) -> list[TelemetryEvent]:
        """Most recent event (by event timestamp) for each message type the device has sent."""
        newest = (
            TelemetryEvent.objects.filter(device_id=device_id, message_type=OuterRef("message_type"))
            .order_by("-timestamp", "-id")
            .values("id")[:1]
        )
        return list(
            TelemetryEvent.objects.filter(device_id=device_id)
            .annotate(newest_id=Subquery(newest))
            .filter(id=F("newest_id"))
            .order_by("message_type")
        )


default_telemetry_store = TelemetryStore()
