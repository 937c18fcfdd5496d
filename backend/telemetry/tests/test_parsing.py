from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

from django.test import SimpleTestCase

from telemetry.errors import InvalidTelemetryEvent
from telemetry.parsing import parse_raw_telemetry

RECEIVED = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)


class ParseRawTelemetryTests(SimpleTestCase):
    def test_dashboard_shape(self):
        telemetry = parse_raw_telemetry(
            {
                "deviceId": "greenhouse-temp-1",
                "timestamp": "2024-05-01T11:59:30Z",
                "messageType": "temperature",
                "value": 23.5,
                "unit": "C",
                "additionalData": {"battery": 88},
            },
            received_at=RECEIVED,
        )
        self.assertEqual(telemetry.device_id, "greenhouse-temp-1")
        self.assertEqual(telemetry.message_type, "temperature")
        self.assertEqual(telemetry.timestamp, datetime(2024, 5, 1, 11, 59, 30, tzinfo=dt_timezone.utc))
        self.assertEqual(telemetry.value, 23.5)
        self.assertEqual(telemetry.unit, "C")
        self.assertEqual(telemetry.additional_data, {"battery": 88})

    def test_snake_case_keys(self):
        telemetry = parse_raw_telemetry(
            {"device_id": "plug-1", "message_type": "power", "value": "12", "additional_data": [1, 2]},
            received_at=RECEIVED,
        )
        self.assertEqual(telemetry.device_id, "plug-1")
        self.assertEqual(telemetry.value, 12.0)
        self.assertEqual(telemetry.additional_data, [1, 2])

    def test_missing_timestamp_defaults_to_receipt_time(self):
        telemetry = parse_raw_telemetry({"deviceId": "d", "messageType": "motion"}, received_at=RECEIVED)
        self.assertEqual(telemetry.timestamp, RECEIVED)
        self.assertIsNone(telemetry.value)
        self.assertEqual(telemetry.unit, "")

    def test_naive_timestamp_is_utc(self):
        telemetry = parse_raw_telemetry(
            {"deviceId": "d", "messageType": "motion", "timestamp": "2024-05-01T10:00:00"}, received_at=RECEIVED
        )
        self.assertEqual(telemetry.timestamp, datetime(2024, 5, 1, 10, 0, tzinfo=dt_timezone.utc))

    def test_boolean_values_become_numbers(self):
        telemetry = parse_raw_telemetry({"deviceId": "d", "messageType": "door", "value": True}, received_at=RECEIVED)
        self.assertEqual(telemetry.value, 1.0)

    def test_required_fields(self):
        for raw in (
            {"messageType": "temperature"},
            {"deviceId": "  ", "messageType": "temperature"},
            {"deviceId": "d"},
            {"deviceId": "d", "messageType": ""},
        ):
            with self.subTest(raw=raw), self.assertRaises(InvalidTelemetryEvent):
                parse_raw_telemetry(raw, received_at=RECEIVED)

    def test_rejects_bad_values(self):
        for raw in (
            {"deviceId": "d", "messageType": "t", "value": "warm"},
            {"deviceId": "d", "messageType": "t", "value": "nan"},
            {"deviceId": "d", "messageType": "t", "value": {"c": 1}},
            {"deviceId": "d", "messageType": "t", "timestamp": "yesterday"},
            {"deviceId": "d", "messageType": "t", "timestamp": 1714560000},
            ["not", "an", "object"],
        ):
            with self.subTest(raw=raw), self.assertRaises(InvalidTelemetryEvent):
                parse_raw_telemetry(raw, received_at=RECEIVED)
