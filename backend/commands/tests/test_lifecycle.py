from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

from django.test import SimpleTestCase, TestCase, TransactionTestCase

from commands.lifecycle import InvalidCommandTransition, can_transition, transition_command
from commands.models import CommandStatus, DeviceCommand
from config.tests.parallel import run_parallel
from devices.models import Device, DeviceType

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)


def _command(status=CommandStatus.PENDING) -> DeviceCommand:
    Device.objects.get_or_create(
        device_id="plug-1",
        defaults={"name": "Plug", "device_type": DeviceType.ACTUATOR, "owner_id": "user-1"},
    )
    return DeviceCommand.objects.create(device_id="plug-1", user_id="user-1", command_type="turn_on", status=status)


class CanTransitionTests(SimpleTestCase):
    def test_forward_only(self):
        self.assertTrue(can_transition(CommandStatus.PENDING, CommandStatus.SENT))
        self.assertTrue(can_transition(CommandStatus.SENT, CommandStatus.COMPLETED))
        self.assertTrue(can_transition(CommandStatus.SENT, CommandStatus.FAILED))
        self.assertTrue(can_transition(CommandStatus.PENDING, CommandStatus.FAILED))
        self.assertFalse(can_transition(CommandStatus.SENT, CommandStatus.PENDING))
        self.assertFalse(can_transition(CommandStatus.SENT, CommandStatus.SENT))
        self.assertFalse(can_transition(CommandStatus.COMPLETED, CommandStatus.FAILED))
        self.assertFalse(can_transition(CommandStatus.FAILED, CommandStatus.COMPLETED))


class TransitionCommandTests(TestCase):
    def test_sent_records_timestamp(self):
        command = _command()

        self.assertTrue(transition_command(command.id, CommandStatus.SENT, now=NOW))

        command.refresh_from_db()
        self.assertEqual(command.status, CommandStatus.SENT)
        self.assertEqual(command.sent_at, NOW)

    def test_failed_records_error_and_completion_time(self):
        command = _command(CommandStatus.SENT)

        self.assertTrue(transition_command(command.id, CommandStatus.FAILED, now=NOW, error="timeout"))

        command.refresh_from_db()
        self.assertEqual(command.completed_at, NOW)
        self.assertEqual(command.last_error, "timeout")

    def test_terminal_commands_never_move(self):
        command = _command(CommandStatus.COMPLETED)

        self.assertFalse(transition_command(command.id, CommandStatus.FAILED, now=NOW))
        self.assertFalse(transition_command(command.id, CommandStatus.SENT, now=NOW))

        command.refresh_from_db()
        self.assertEqual(command.status, CommandStatus.COMPLETED)

    def test_pending_is_not_a_target(self):
        command = _command(CommandStatus.SENT)
        with self.assertRaises(InvalidCommandTransition):
            transition_command(command.id, CommandStatus.PENDING)


class TransitionRaceTests(TransactionTestCase):
    def test_first_terminal_report_wins(self):
        command = _command(CommandStatus.SENT)
        targets = [CommandStatus.COMPLETED, CommandStatus.FAILED] * 3

        results, errors = run_parallel(
            [lambda target=target: transition_command(command.id, target) for target in targets]
        )

        self.assertEqual(errors, [])
        self.assertEqual(sum(1 for applied in results if applied), 1)
        command.refresh_from_db()
        self.assertIn(command.status, (CommandStatus.COMPLETED, CommandStatus.FAILED))
