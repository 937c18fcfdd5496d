from __future__ import annotations

import uuid

from django.urls import reverse
from rest_framework.test import APITestCase

from commands.models import CommandStatus, DeviceCommand
from devices.models import Device, DeviceType


class CommandApiTests(APITestCase):
    def setUp(self):
        Device.objects.create(device_id="plug-1", name="Plug", device_type=DeviceType.ACTUATOR, owner_id="user-1")

    def _sent_command(self) -> DeviceCommand:
        return DeviceCommand.objects.create(
            device_id="plug-1", user_id="user-1", command_type="turn_on", status=CommandStatus.SENT
        )

    def test_issue_command_with_transport_disabled_is_failed(self):
        response = self.client.post(
            reverse("command-list"),
            {"device_id": "plug-1", "user_id": "user-1", "command_type": "turn_on", "payload": {"level": 2}},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], CommandStatus.FAILED)
        self.assertEqual(response.data["source"], "user")
        self.assertTrue(response.data["last_error"])

    def test_issue_command_unknown_device_is_404(self):
        response = self.client.post(
            reverse("command-list"),
            {"device_id": "ghost", "user_id": "user-1", "command_type": "turn_on"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_list_filters_by_device(self):
        self._sent_command()
        response = self.client.get(reverse("command-list"), {"deviceId": "plug-1"})
        self.assertEqual(len(response.json()["data"]), 1)
        response = self.client.get(reverse("command-list"), {"deviceId": "other"})
        self.assertEqual(response.json()["data"], [])

    def test_detail(self):
        command = self._sent_command()
        response = self.client.get(reverse("command-detail", args=[command.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["id"], str(command.id))

        missing = self.client.get(reverse("command-detail", args=[uuid.uuid4()]))
        self.assertEqual(missing.status_code, 404)

    def test_report_is_forward_only(self):
        command = self._sent_command()
        url = reverse("command-report", args=[command.id])

        first = self.client.post(url, {"status": "completed"}, format="json")
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.data["applied"])
        self.assertEqual(first.data["command"]["status"], CommandStatus.COMPLETED)

        second = self.client.post(url, {"status": "failed", "error": "late"}, format="json")
        self.assertEqual(second.status_code, 200)
        self.assertFalse(second.data["applied"])
        self.assertEqual(second.data["command"]["status"], CommandStatus.COMPLETED)

    def test_report_rejects_unknown_status(self):
        command = self._sent_command()
        response = self.client.post(reverse("command-report", args=[command.id]), {"status": "sent"}, format="json")
        self.assertEqual(response.status_code, 400)
