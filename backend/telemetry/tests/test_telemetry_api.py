from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from automation.models import AutomationRule
from commands.models import CommandStatus, DeviceCommand
from devices.models import Device, DeviceType
from telemetry.models import TelemetryEvent


class TelemetryApiTests(APITestCase):
    def setUp(self):
        self.device = Device.objects.create(
            device_id="greenhouse-temp-1", name="Greenhouse", device_type=DeviceType.SENSOR, owner_id="user-1"
        )

    def test_post_ingests_event(self):
        response = self.client.post(
            reverse("telemetry"),
            {"deviceId": "greenhouse-temp-1", "messageType": "temperature", "value": 22.5, "unit": "C"},
            format="json",
        )

        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.data["device_id"], "greenhouse-temp-1")
        self.assertEqual(response.data["value"], 22.5)
        self.device.refresh_from_db()
        self.assertTrue(self.device.is_online)

    def test_post_unknown_device_is_404(self):
        response = self.client.post(
            reverse("telemetry"), {"deviceId": "ghost", "messageType": "temperature"}, format="json"
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["status"], "not_found")
        self.assertFalse(TelemetryEvent.objects.exists())

    def test_post_invalid_payload_is_400(self):
        response = self.client.post(reverse("telemetry"), {"deviceId": "greenhouse-temp-1"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["status"], "validation_error")

    def test_ingest_runs_matching_rules(self):
        rule = AutomationRule.objects.create(
            user_id="user-1",
            name="Vent greenhouse",
            triggers=[
                {
                    "type": "sensor_threshold",
                    "device": "greenhouse-temp-1",
                    "messageType": "temperature",
                    "operator": ">",
                    "threshold": 25,
                }
            ],
            actions=[{"type": "device_command", "device": "greenhouse-temp-1", "command": "open_vent"}],
        )

        self.client.post(
            reverse("telemetry"),
            {"deviceId": "greenhouse-temp-1", "messageType": "temperature", "value": 30},
            format="json",
        )

        rule.refresh_from_db()
        self.assertEqual(rule.execution_count, 1)
        command = DeviceCommand.objects.get()
        self.assertEqual(command.command_type, "open_vent")
        # The MQTT transport is disabled in tests, so delivery is rejected.
        self.assertEqual(command.status, CommandStatus.FAILED)

    def test_get_requires_device_id(self):
        response = self.client.get(reverse("telemetry"))
        self.assertEqual(response.status_code, 400)

    def test_get_rejects_bad_hours(self):
        response = self.client.get(reverse("telemetry"), {"deviceId": "greenhouse-temp-1", "hours": "0"})
        self.assertEqual(response.status_code, 400)

    def test_get_returns_recent_events_newest_first(self):
        now = timezone.now()
        for minutes, message_type in ((5, "temperature"), (1, "temperature"), (3, "humidity")):
            TelemetryEvent.objects.create(
                device=self.device, timestamp=now - timedelta(minutes=minutes), message_type=message_type, value=1
            )
        TelemetryEvent.objects.create(
            device=self.device, timestamp=now - timedelta(hours=30), message_type="temperature", value=1
        )

        response = self.client.get(reverse("telemetry"), {"deviceId": "greenhouse-temp-1"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["meta"]["total"], 3)
        self.assertEqual([row["message_type"] for row in body["data"]], ["temperature", "humidity", "temperature"])

        filtered = self.client.get(
            reverse("telemetry"), {"deviceId": "greenhouse-temp-1", "messageType": "humidity", "hours": 48}
        )
        self.assertEqual(filtered.json()["meta"]["total"], 1)

    def test_latest_returns_newest_event_per_message_type(self):
        now = timezone.now()
        TelemetryEvent.objects.create(device=self.device, timestamp=now - timedelta(minutes=2), message_type="temperature", value=20)
        TelemetryEvent.objects.create(device=self.device, timestamp=now - timedelta(minutes=9), message_type="temperature", value=30)
        TelemetryEvent.objects.create(device=self.device, timestamp=now - timedelta(minutes=5), message_type="humidity", value=60)

        response = self.client.get(reverse("telemetry-latest"), {"deviceId": "greenhouse-temp-1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [(row["message_type"], row["value"]) for row in response.json()["data"]],
            [("humidity", 60.0), ("temperature", 20.0)],
        )
