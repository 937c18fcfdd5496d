"""
Telemetry ingestion pipeline.

`IngestionPipeline.ingest` turns one raw device message into a durable `TelemetryEvent`:

1. resolve the device (unknown devices are dropped with `DeviceNotFound`),
2. append the event and raise device presence in one transaction,
3. fan the event out to dashboards (best-effort),
4. hand the event to the rule evaluator (detached; never affects ingestion).

Only failures of step 2 propagate to the caller so the transport can redeliver.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Protocol

from django.db import DatabaseError, transaction
from django.utils import timezone

from devices.models import Device
from devices.registry import DeviceRegistry, Presence, default_device_registry
from realtime.fanout import DEVICE_STATUS_UPDATE, TELEMETRY_UPDATE, BroadcastFanout, default_fanout
from telemetry.errors import DeviceNotFound, PersistenceFailure
from telemetry.models import TelemetryEvent
from telemetry.parsing import parse_raw_telemetry
from telemetry.store import TelemetryStore, default_telemetry_store, telemetry_update_payload

logger = logging.getLogger(__name__)


class RuleEvaluator(Protocol):
    def submit(self, event: TelemetryEvent) -> bool:
        """Schedule rule evaluation for a persisted event; must not block on evaluation."""
        ...


class IngestionPipeline:
    def __init__(
        self,
        *,
        evaluator: RuleEvaluator,
        registry: DeviceRegistry | None = None,
        store: TelemetryStore | None = None,
        fanout: BroadcastFanout | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.registry = registry or default_device_registry
        self.store = store or default_telemetry_store
        self.fanout = fanout or default_fanout

    def ingest(self, raw: Any, *, received_at: datetime | None = None) -> TelemetryEvent:
        telemetry = parse_raw_telemetry(raw, received_at=received_at or timezone.now())

        device: Device | None = self.registry.get_device(telemetry.device_id)
        if device is None:
            logger.info("Dropping %s telemetry from unknown device %s", telemetry.message_type, telemetry.device_id)
            raise DeviceNotFound(telemetry.device_id)

        try:
            with transaction.atomic():
                event = self.store.append(telemetry)
                presence = self.registry.upsert_presence(telemetry.device_id, telemetry.timestamp)
        except DatabaseError as exc:
            logger.exception("Failed to persist telemetry for device %s", telemetry.device_id)
            raise PersistenceFailure(f"Failed to persist telemetry for device '{telemetry.device_id}'.") from exc

        self._publish(event, presence)
        self._submit_for_evaluation(event)
        return event

    def _publish(self, event: TelemetryEvent, presence: Presence | None) -> None:
        try:
            self.fanout.publish_to_all(TELEMETRY_UPDATE, telemetry_update_payload(event))
            if presence is not None:
                self.fanout.publish_to_all(DEVICE_STATUS_UPDATE, presence.as_payload())
        except Exception:
            logger.exception("Telemetry fanout failed for device %s", event.device_id)

    def _submit_for_evaluation(self, event: TelemetryEvent) -> None:
        try:
            self.evaluator.submit(event)
        except Exception:
            logger.exception("Failed to schedule rule evaluation for telemetry %s", event.pk)


_pipeline: IngestionPipeline | None = None
_pipeline_lock = threading.Lock()


def get_pipeline() -> IngestionPipeline:
    """Process-wide pipeline wired to the default collaborators."""
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            from automation.dispatcher import get_dispatcher

            _pipeline = IngestionPipeline(evaluator=get_dispatcher())
        return _pipeline


def ingest_telemetry(raw: Any, *, received_at: datetime | None = None) -> TelemetryEvent:
    return get_pipeline().ingest(raw, received_at=received_at)
