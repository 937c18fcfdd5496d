from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from django.db import models, transaction
from django.db.models.functions import Coalesce, Greatest
from django.utils import timezone

from config.domain_exceptions import ValidationError
from devices.models import Device, DeviceType

logger = logging.getLogger(__name__)


class DeviceRegistrationError(ValidationError):
    pass


@dataclass(frozen=True)
class DeviceDescriptor:
    device_id: str
    name: str
    device_type: str
    owner_id: str
    location: str = ""
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Presence:
    device_id: str
    is_online: bool
    last_seen: datetime | None

    def as_payload(self) -> dict[str, Any]:
        """Shape used for the `deviceStatusUpdate` broadcast."""
        return {
            "deviceId": self.device_id,
            "isOnline": self.is_online,
            "lastSeen": self.last_seen.isoformat() if self.last_seen else None,
        }


def _validate_descriptor(descriptor: DeviceDescriptor) -> None:
    if not (descriptor.device_id or "").strip():
        raise DeviceRegistrationError("device_id is required.")
    if not (descriptor.name or "").strip():
        raise DeviceRegistrationError("name is required.")
    if descriptor.device_type not in DeviceType.values:
        raise DeviceRegistrationError(
            f"device_type must be one of: {', '.join(DeviceType.values)}."
        )
    if not isinstance(descriptor.properties, dict):
        raise DeviceRegistrationError("properties must be an object.")


class DeviceRegistry:
    """
    Current known state of each device.

    Presence writes are single conditional UPDATE statements so concurrent ingestion for the
    same device never needs a lock: `last_seen` converges to the maximum timestamp observed
    regardless of the order events are applied in.
    """

    def get_device(self, device_id: str) -> Device | None:
        if not device_id:
            return None
        return Device.objects.filter(device_id=device_id).first()

    def upsert_presence(self, device_id: str, timestamp: datetime) -> Presence | None:
        """Mark the device online and raise `last_seen` to `timestamp` if it is newer."""
        seen_at = models.Value(timestamp, output_field=models.DateTimeField())
        updated = Device.objects.filter(device_id=device_id).update(
            is_online=True,
            # Greatest() returns NULL on SQLite when any argument is NULL.
            last_seen=Greatest(Coalesce("last_seen", seen_at), seen_at),
            updated_at=timezone.now(),
        )
        if not updated:
            return None
        row = Device.objects.filter(device_id=device_id).values("is_online", "last_seen").first()
        if row is None:
            return None
        return Presence(device_id=device_id, is_online=row["is_online"], last_seen=row["last_seen"])

    def register_or_update(self, descriptor: DeviceDescriptor) -> tuple[Device, bool]:
        """
        Upsert keyed by device id.

        Unknown ids create a device (offline until its first telemetry). Known ids get their
        descriptive fields refreshed; presence and ownership are left untouched.
        """
        _validate_descriptor(descriptor)
        with transaction.atomic():
            device, created = Device.objects.select_for_update().get_or_create(
                device_id=descriptor.device_id.strip(),
                defaults={
                    "name": descriptor.name.strip(),
                    "device_type": descriptor.device_type,
                    "location": descriptor.location or "",
                    "owner_id": descriptor.owner_id or "",
                    "properties": dict(descriptor.properties),
                },
            )
            if not created:
                device.name = descriptor.name.strip()
                device.device_type = descriptor.device_type
                device.location = descriptor.location or ""
                device.properties = dict(descriptor.properties)
                device.save(update_fields=["name", "device_type", "location", "properties", "updated_at"])

        logger.info("Device %s %s", device.device_id, "registered" if created else "updated")
        return device, created


default_device_registry = DeviceRegistry()
