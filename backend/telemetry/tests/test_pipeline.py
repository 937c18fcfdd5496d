from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any

from django.db import DatabaseError
from django.test import TestCase

from devices.models import Device, DeviceType
from realtime.fanout import DEVICE_STATUS_UPDATE, TELEMETRY_UPDATE
from telemetry.errors import DeviceNotFound, InvalidTelemetryEvent, PersistenceFailure
from telemetry.models import TelemetryEvent
from telemetry.pipeline import IngestionPipeline
from telemetry.store import TelemetryStore

T1 = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)
T2 = T1 + timedelta(minutes=1)


class RecordingEvaluator:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.events: list[TelemetryEvent] = []

    def submit(self, event: TelemetryEvent) -> bool:
        self.events.append(event)
        if self.error is not None:
            raise self.error
        return True


class RecordingFanout:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.published: list[tuple[str, Any]] = []

    def publish_to_all(self, event_name: str, payload: Any) -> bool:
        if self.error is not None:
            raise self.error
        self.published.append((event_name, payload))
        return True

    def publish_to_group(self, group: str, event_name: str, payload: Any) -> bool:
        return self.publish_to_all(event_name, payload)

    def publish_to_user(self, user_id: str, event_name: str, payload: Any) -> bool:
        return self.publish_to_all(event_name, payload)


class FailingStore(TelemetryStore):
    def append(self, telemetry):
        raise DatabaseError("disk I/O error")


def _raw(**overrides) -> dict[str, Any]:
    raw = {
        "deviceId": "greenhouse-temp-1",
        "timestamp": T1.isoformat(),
        "messageType": "temperature",
        "value": 30,
        "unit": "C",
    }
    raw.update(overrides)
    return raw


class IngestionPipelineTests(TestCase):
    def setUp(self):
        Device.objects.create(
            device_id="greenhouse-temp-1", name="Greenhouse", device_type=DeviceType.SENSOR, owner_id="user-1"
        )
        self.evaluator = RecordingEvaluator()
        self.fanout = RecordingFanout()
        self.pipeline = IngestionPipeline(evaluator=self.evaluator, fanout=self.fanout)

    def test_ingest_persists_once_and_marks_device_online(self):
        event = self.pipeline.ingest(_raw())

        self.assertEqual(TelemetryEvent.objects.count(), 1)
        self.assertEqual(event.device_id, "greenhouse-temp-1")
        self.assertEqual(event.timestamp, T1)
        self.assertEqual(event.value, 30.0)
        device = Device.objects.get(pk="greenhouse-temp-1")
        self.assertTrue(device.is_online)
        self.assertEqual(device.last_seen, T1)

    def test_ingest_publishes_and_submits_for_evaluation(self):
        event = self.pipeline.ingest(_raw(additionalData={"battery": 80}))

        self.assertEqual(
            self.fanout.published,
            [
                (
                    TELEMETRY_UPDATE,
                    {
                        "deviceId": "greenhouse-temp-1",
                        "messageType": "temperature",
                        "value": 30.0,
                        "unit": "C",
                        "timestamp": T1.isoformat(),
                        "additionalData": {"battery": 80},
                    },
                ),
                (
                    DEVICE_STATUS_UPDATE,
                    {"deviceId": "greenhouse-temp-1", "isOnline": True, "lastSeen": T1.isoformat()},
                ),
            ],
        )
        self.assertEqual(self.evaluator.events, [event])

    def test_unknown_device_persists_nothing(self):
        with self.assertRaises(DeviceNotFound) as ctx:
            self.pipeline.ingest(_raw(deviceId="ghost"))

        self.assertEqual(ctx.exception.device_id, "ghost")
        self.assertFalse(TelemetryEvent.objects.exists())
        self.assertEqual(self.fanout.published, [])
        self.assertEqual(self.evaluator.events, [])

    def test_invalid_event_is_rejected_before_lookup(self):
        with self.assertRaises(InvalidTelemetryEvent):
            self.pipeline.ingest(_raw(messageType=""))
        self.assertFalse(TelemetryEvent.objects.exists())

    def test_out_of_order_event_keeps_latest_last_seen(self):
        self.pipeline.ingest(_raw(timestamp=T2.isoformat()))
        self.pipeline.ingest(_raw(timestamp=T1.isoformat()))

        self.assertEqual(TelemetryEvent.objects.count(), 2)
        self.assertEqual(Device.objects.get(pk="greenhouse-temp-1").last_seen, T2)

    def test_missing_timestamp_uses_receipt_time(self):
        raw = _raw()
        raw.pop("timestamp")

        event = self.pipeline.ingest(raw, received_at=T2)

        self.assertEqual(event.timestamp, T2)

    def test_fanout_failure_does_not_fail_ingestion(self):
        pipeline = IngestionPipeline(evaluator=self.evaluator, fanout=RecordingFanout(error=RuntimeError("layer down")))

        with self.assertLogs("telemetry.pipeline", level="ERROR"):
            event = pipeline.ingest(_raw())

        self.assertTrue(TelemetryEvent.objects.filter(pk=event.pk).exists())
        self.assertEqual(self.evaluator.events, [event])

    def test_evaluator_failure_does_not_fail_ingestion(self):
        pipeline = IngestionPipeline(evaluator=RecordingEvaluator(error=RuntimeError("pool gone")), fanout=self.fanout)

        with self.assertLogs("telemetry.pipeline", level="ERROR"):
            event = pipeline.ingest(_raw())

        self.assertTrue(TelemetryEvent.objects.filter(pk=event.pk).exists())

    def test_persistence_failure_is_surfaced_without_side_effects(self):
        pipeline = IngestionPipeline(evaluator=self.evaluator, store=FailingStore(), fanout=self.fanout)

        with self.assertLogs("telemetry.pipeline", level="ERROR"):
            with self.assertRaises(PersistenceFailure):
                pipeline.ingest(_raw())

        self.assertIsNone(Device.objects.get(pk="greenhouse-temp-1").last_seen)
        self.assertEqual(self.fanout.published, [])
        self.assertEqual(self.evaluator.events, [])
