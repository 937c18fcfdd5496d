from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

from django.test import TestCase

from automation.models import AutomationRule
from automation.rules.action_executor import execute_actions
from automation.tests.fakes import FakeCommandGateway, FakeNotifier
from commands.gateways import DeliveryResult
from commands.models import CommandStatus, DeviceCommand
from devices.models import Device, DeviceType
from notifications.handlers.base import NotificationResult
from telemetry.models import TelemetryEvent

NOW = datetime(2024, 5, 1, 18, 0, tzinfo=dt_timezone.utc)


class ExecuteActionsTests(TestCase):
    def setUp(self):
        Device.objects.create(device_id="fan-1", name="Fan", device_type=DeviceType.ACTUATOR, owner_id="user-1")
        self.rule = AutomationRule.objects.create(user_id="user-1", name="Cool greenhouse")
        self.event = TelemetryEvent.objects.create(device_id="fan-1", timestamp=NOW, message_type="temperature", value=31.5)
        self.gateway = FakeCommandGateway()
        self.notifier = FakeNotifier()

    def _run(self, actions):
        return execute_actions(
            rule=self.rule,
            actions=actions,
            event=self.event,
            now=NOW,
            command_gateway=self.gateway,
            notifier=self.notifier,
        )

    def test_device_command_accepted_is_sent(self):
        result = self._run([{"type": "device_command", "device": "fan-1", "command": "turn_on"}])

        command = DeviceCommand.objects.get()
        self.assertEqual(command.status, CommandStatus.SENT)
        self.assertEqual(command.sent_at, NOW)
        self.assertEqual(result["errors"], [])
        self.assertEqual(result["actions"][0]["command_id"], str(command.id))
        self.assertEqual(result["timestamp"], NOW.isoformat())

    def test_device_command_rejected_is_failed(self):
        self.gateway = FakeCommandGateway(result=DeliveryResult.rejected("transport disabled"))

        result = self._run([{"type": "device_command", "device": "fan-1", "command": "turn_on"}])

        command = DeviceCommand.objects.get()
        self.assertEqual(command.status, CommandStatus.FAILED)
        self.assertEqual(command.last_error, "transport disabled")
        self.assertEqual(result["errors"], ["transport disabled"])

    def test_transport_exception_leaves_command_pending(self):
        self.gateway = FakeCommandGateway(error=ConnectionError("broker unreachable"))

        result = self._run([{"type": "device_command", "device": "fan-1", "command": "turn_on"}])

        self.assertEqual(DeviceCommand.objects.get().status, CommandStatus.PENDING)
        self.assertEqual(result["errors"], [])
        self.assertTrue(result["actions"][0]["ok"])

    def test_failing_action_does_not_stop_siblings(self):
        with self.assertLogs("automation.rules.action_executor", level="WARNING"):
            result = self._run(
                [
                    {"type": "device_command", "device": "missing-device", "command": "turn_on"},
                    {"type": "device_command", "device": "fan-1"},
                    {"type": "notification", "message": "Fan started"},
                ]
            )

        self.assertEqual(len(result["actions"]), 3)
        self.assertFalse(result["actions"][0]["ok"])
        self.assertEqual(result["actions"][1]["error"], "missing_command")
        self.assertTrue(result["actions"][2]["ok"])
        self.assertEqual(len(result["errors"]), 2)
        self.assertEqual(len(self.notifier.calls), 1)

    def test_notification_passes_rule_and_event_context(self):
        self._run([{"type": "notification", "message": "Too hot", "title": "Greenhouse"}])

        call = self.notifier.calls[0]
        self.assertEqual(call["message"], "Too hot")
        self.assertEqual(call["title"], "Greenhouse")
        self.assertEqual(call["rule_name"], "Cool greenhouse")
        self.assertEqual(call["user_id"], "user-1")
        self.assertEqual(call["data"]["deviceId"], "fan-1")
        self.assertEqual(call["data"]["value"], 31.5)

    def test_notification_failure_is_recorded(self):
        self.notifier = FakeNotifier(NotificationResult.error("Request timed out", code="TIMEOUT"))

        result = self._run([{"type": "notification", "message": "Too hot"}])

        self.assertEqual(result["errors"], ["Request timed out"])
        self.assertEqual(result["actions"][0]["error_code"], "TIMEOUT")

    def test_unknown_action_is_a_no_op(self):
        result = self._run([{"type": "sound_siren"}, "not-an-object"])

        self.assertEqual(result["actions"][0], {"ok": False, "type": "sound_siren", "error": "unsupported_action"})
        self.assertEqual(result["actions"][1], {"ok": False, "type": "invalid", "error": "invalid_action"})
        self.assertEqual(result["errors"], ["invalid_action"])
        self.assertFalse(DeviceCommand.objects.exists())
