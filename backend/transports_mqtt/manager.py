"""
Long-lived MQTT connection used as the device transport.

Devices publish telemetry and command acknowledgements to the broker; the hub publishes
commands back. `MqttConnectionManager` owns the single paho client for the process: it
(re)connects in the background, re-applies topic subscriptions after every connect and fans
incoming messages out to the callbacks registered per topic filter.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypedDict

import paho.mqtt.client as mqtt

from config.domain_exceptions import GatewayError, GatewayUnavailableError, GatewayValidationError

GATEWAY_NAME = "MQTT"

# paho reports MQTT 3.1.1 CONNACK codes using their MQTT 5 reason-code equivalents.
_BAD_CREDENTIALS = 134
_NOT_AUTHORIZED = 135
_CLIENT_ID_REJECTED = 133
_SERVER_UNAVAILABLE = 136

MessageCallback = Callable[..., None]


class MqttGatewayError(GatewayError):
    gateway_name = GATEWAY_NAME


class MqttValidationError(GatewayValidationError):
    gateway_name = GATEWAY_NAME


class MqttNotConfigured(GatewayUnavailableError, MqttGatewayError):
    pass


class MqttNotReachable(GatewayUnavailableError, MqttGatewayError):
    def __init__(self, error: str | None = None):
        self.error = error
        super().__init__(error or "MQTT broker is not reachable.")


class MqttPublishError(MqttGatewayError):
    def __init__(self, topic: str, error: str | None = None):
        self.operation = f"publish to {topic}"
        self.error = error
        message = f"{GATEWAY_NAME} publish to {topic} failed."
        if error:
            message = f"{message} Error: {error}"
        super().__init__(message)


class MqttSubscribeError(MqttGatewayError):
    def __init__(self, topic: str, error: str | None = None):
        self.operation = f"subscribe to {topic}"
        self.error = error
        message = f"{GATEWAY_NAME} subscribe to {topic} failed."
        if error:
            message = f"{message} Error: {error}"
        super().__init__(message)


class MqttConnectionSettings(TypedDict, total=False):
    enabled: bool
    host: str
    port: int
    username: str
    password: str
    use_tls: bool
    tls_insecure: bool
    client_id: str
    keepalive_seconds: int


@dataclass(frozen=True)
class MqttConnectionStatus:
    configured: bool
    enabled: bool
    connected: bool
    last_connect_at: datetime | None = None
    last_disconnect_at: datetime | None = None
    last_error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "configured": self.configured,
            "enabled": self.enabled,
            "connected": self.connected,
            "last_connect_at": self.last_connect_at.isoformat() if self.last_connect_at else None,
            "last_disconnect_at": self.last_disconnect_at.isoformat() if self.last_disconnect_at else None,
            "last_error": self.last_error,
        }


def describe_connect_failure(*, reason: str, code: int, settings: MqttConnectionSettings | None = None) -> str:
    """Turn a refused CONNACK into an actionable message."""
    message = f"MQTT connect failed: {reason} (code={code})."
    settings = settings or {}
    if code in {_BAD_CREDENTIALS, _NOT_AUTHORIZED}:
        if not (settings.get("username") or settings.get("password")):
            return f"{message} Broker likely requires authentication; set MQTT_USERNAME/MQTT_PASSWORD."
        return f"{message} Check username/password and broker ACLs."
    if code == _CLIENT_ID_REJECTED:
        return f"{message} Set a unique client_id."
    if code == _SERVER_UNAVAILABLE:
        return f"{message} Verify host/port and broker availability."
    return message


def topic_matches(*, topic_filter: str, topic: str) -> bool:
    """Return True if an MQTT topic matches a subscription filter (`+` and `#` wildcards)."""
    if topic_filter == topic:
        return True
    if "+" not in topic_filter and "#" not in topic_filter:
        return False

    filter_parts = topic_filter.split("/")
    topic_parts = topic.split("/")
    for index, part in enumerate(filter_parts):
        if part == "#":
            return True
        if index >= len(topic_parts):
            return False
        if part != "+" and part != topic_parts[index]:
            return False
    return len(filter_parts) == len(topic_parts)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _is_configured(settings: MqttConnectionSettings) -> bool:
    return bool(settings.get("host")) and bool(settings.get("port"))


class MqttConnectionManager:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._client: mqtt.Client | None = None
        self._settings: MqttConnectionSettings = {}
        self._connected = False
        self._last_connect_at: datetime | None = None
        self._last_disconnect_at: datetime | None = None
        self._last_error: str | None = None
        # topic filter -> {"qos": max requested qos, "callbacks": [...]}
        self._subscriptions: dict[str, dict[str, Any]] = {}
        self._logger = logging.getLogger(__name__)

    def get_status(self) -> MqttConnectionStatus:
        with self._lock:
            settings = dict(self._settings)
            return MqttConnectionStatus(
                configured=_is_configured(settings),
                enabled=bool(settings.get("enabled")),
                connected=self._connected,
                last_connect_at=self._last_connect_at,
                last_disconnect_at=self._last_disconnect_at,
                last_error=self._last_error,
            )

    def apply_settings(self, *, settings: MqttConnectionSettings) -> None:
        """Apply connection settings, connecting or disconnecting to match them."""
        with self._lock:
            unchanged = dict(self._settings) == dict(settings)
            self._settings = dict(settings)

        if not settings.get("enabled"):
            self._disconnect()
            return
        if not _is_configured(settings):
            self._set_error("MQTT is enabled but host/port are not configured.")
            self._disconnect()
            return
        if unchanged and self.get_status().connected:
            return
        self._connect(settings=settings)

    def publish(self, *, topic: str, payload: str, qos: int = 0, retain: bool = False) -> None:
        """Publish a string payload, raising if the broker connection is down."""
        with self._lock:
            client = self._client
            connected = self._connected
        if client is None or not connected:
            raise MqttNotReachable("MQTT is not connected.")
        try:
            info = client.publish(topic, payload=payload, qos=qos, retain=retain)
        except Exception as exc:
            raise MqttPublishError(topic, str(exc)) from exc
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise MqttPublishError(topic, mqtt.error_string(info.rc))

    def subscribe(self, *, topic: str, qos: int = 0, callback: MessageCallback) -> None:
        """
        Register `callback(topic=..., payload=...)` for a topic filter.

        The broker subscription is (re)applied on every connect with the highest qos requested.
        """
        with self._lock:
            entry = self._subscriptions.setdefault(topic, {"qos": int(qos), "callbacks": []})
            entry["qos"] = max(int(entry["qos"]), int(qos))
            if callback not in entry["callbacks"]:
                entry["callbacks"].append(callback)
            client = self._client
            connected = self._connected
        if client is not None and connected:
            try:
                client.subscribe(topic, qos=qos)
            except Exception as exc:
                raise MqttSubscribeError(topic, str(exc)) from exc

    def _set_error(self, error: str | None) -> None:
        with self._lock:
            self._last_error = error

    def _disconnect(self) -> None:
        with self._lock:
            client = self._client
            self._client = None
            if self._connected:
                self._last_disconnect_at = _now()
            self._connected = False

        if client is None:
            return
        for teardown in (client.disconnect, client.loop_stop):
            try:
                teardown()
            except Exception:
                self._logger.debug("Cleanup failed during disconnect", exc_info=True)

    def _connect(self, *, settings: MqttConnectionSettings) -> None:
        client = self._build_client(settings=settings)

        def on_connect(_client, _userdata, _flags, reason_code, _properties=None):
            if reason_code.is_failure:
                error = describe_connect_failure(reason=str(reason_code), code=reason_code.value, settings=settings)
                self._logger.warning(error)
                with self._lock:
                    self._connected = False
                    self._last_error = error
                return
            with self._lock:
                self._connected = True
                self._last_connect_at = _now()
                self._last_error = None
            self._logger.info("MQTT connected to %s:%s", settings.get("host"), settings.get("port"))
            self._resubscribe()

        def on_disconnect(_client, _userdata, _flags, reason_code, _properties=None):
            with self._lock:
                self._connected = False
                self._last_disconnect_at = _now()
                if reason_code.is_failure:
                    self._last_error = f"MQTT disconnected: {reason_code}."
            self._logger.info("MQTT disconnected (%s)", reason_code)

        client.on_connect = on_connect
        client.on_disconnect = on_disconnect
        client.on_message = self._on_message

        self._disconnect()
        with self._lock:
            self._client = client

        try:
            client.connect_async(
                settings.get("host", ""),
                int(settings.get("port", 1883)),
                int(settings.get("keepalive_seconds", 30)),
            )
            client.loop_start()
        except Exception as exc:
            self._logger.warning("MQTT connect to %s failed: %s", settings.get("host"), exc)
            self._set_error(str(exc))
            self._disconnect()

    @staticmethod
    def _build_client(*, settings: MqttConnectionSettings) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=str(settings.get("client_id") or "telemetry-hub"),
        )
        client.reconnect_delay_set(min_delay=1, max_delay=30)

        username = settings.get("username") or ""
        password = settings.get("password") or ""
        if username or password:
            client.username_pw_set(username, password)

        if settings.get("use_tls"):
            client.tls_set()
            if settings.get("tls_insecure"):
                client.tls_insecure_set(True)
        return client

    def _resubscribe(self) -> None:
        with self._lock:
            client = self._client
            subs = {topic: int(entry["qos"]) for topic, entry in self._subscriptions.items()}
        if client is None:
            return
        for topic, qos in subs.items():
            try:
                client.subscribe(topic, qos=qos)
            except Exception as exc:
                self._logger.warning("MQTT subscribe failed for %s: %s", topic, exc)

    def _on_message(self, _client, _userdata, msg) -> None:
        topic = getattr(msg, "topic", "")
        payload_bytes = getattr(msg, "payload", b"") or b""
        payload = payload_bytes.decode("utf-8", errors="replace")

        with self._lock:
            callbacks = [
                callback
                for topic_filter, entry in self._subscriptions.items()
                if topic_matches(topic_filter=topic_filter, topic=topic)
                for callback in entry["callbacks"]
            ]
        for callback in callbacks:
            try:
                callback(topic=topic, payload=payload)
            except Exception as exc:
                self._logger.warning("MQTT message handler failed for %s: %s", topic, exc)


mqtt_connection_manager = MqttConnectionManager()
