from __future__ import annotations

from django.test import SimpleTestCase
from rest_framework.exceptions import ValidationError as DrfValidationError

from commands.gateways import DispatchRejected
from config import domain_exceptions
from config.exception_handler import custom_exception_handler
from telemetry.errors import DeviceNotFound, InvalidTelemetryEvent, PersistenceFailure
from transports_mqtt.manager import MqttNotConfigured, MqttNotReachable, MqttPublishError, MqttValidationError


class _DummyView:
    pass


class ExceptionHandlerTests(SimpleTestCase):
    def _handle(self, exc: Exception):
        response = custom_exception_handler(exc, {"view": _DummyView()})
        self.assertIsNotNone(response)
        return response

    def test_drf_validation_error_includes_envelope(self):
        response = self._handle(DrfValidationError({"device_id": ["This field is required."]}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["status"], "validation_error")
        self.assertEqual(response.data["error"]["message"], "This field is required.")
        self.assertIn("device_id", response.data["error"]["details"])

    def test_nested_validation_details_are_flattened(self):
        response = self._handle(DrfValidationError({"payload": {"brightness": ["Too high."]}, "name": ["Required."]}))
        self.assertEqual(response.data["error"]["message"], "One or more fields failed validation.")
        self.assertEqual(response.data["error"]["details"]["payload.brightness"], ["Too high."])

    def test_invalid_telemetry_maps_to_400(self):
        response = self._handle(InvalidTelemetryEvent("deviceId is required."))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["status"], "validation_error")

    def test_device_not_found_maps_to_404(self):
        response = self._handle(DeviceNotFound("ghost"))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["status"], "not_found")
        self.assertIn("ghost", response.data["error"]["message"])

    def test_persistence_failure_maps_to_503(self):
        response = self._handle(PersistenceFailure("store unavailable"))
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["error"]["status"], "service_unavailable")

    def test_gateway_not_reachable_maps_to_503(self):
        response = self._handle(MqttNotReachable("broker down"))
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["error"]["status"], "service_unavailable")
        self.assertEqual(response.data["error"].get("gateway"), "MQTT")

    def test_gateway_not_configured_maps_to_503(self):
        response = self._handle(MqttNotConfigured("MQTT is disabled."))
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["error"]["status"], "service_unavailable")

    def test_gateway_error_maps_to_502_regardless_of_class_name(self):
        class CameraNotReachable(domain_exceptions.GatewayError):
            gateway_name = "Camera"

        response = self._handle(CameraNotReachable("timeout"))
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["error"]["status"], "gateway_error")

    def test_gateway_validation_error_maps_to_400_and_includes_gateway(self):
        response = self._handle(MqttValidationError("Host is required."))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["status"], "validation_error")
        self.assertEqual(response.data["error"].get("gateway"), "MQTT")

    def test_gateway_operation_error_includes_operation(self):
        response = self._handle(MqttPublishError("devices/plug-1/commands", "boom"))
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["error"]["status"], "gateway_error")
        self.assertEqual(response.data["error"].get("gateway"), "MQTT")
        self.assertEqual(response.data["error"].get("operation"), "publish to devices/plug-1/commands")
        self.assertEqual(response.data["error"].get("error"), "boom")

    def test_dispatch_rejected_is_gateway_error(self):
        response = self._handle(DispatchRejected("device asleep"))
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["error"].get("gateway"), "DeviceCommand")
        self.assertEqual(response.data["error"].get("error"), "device asleep")

    def test_unhandled_exception_returns_none(self):
        with self.assertLogs("config.exception_handler", level="ERROR"):
            self.assertIsNone(custom_exception_handler(RuntimeError("boom"), {"view": _DummyView()}))
