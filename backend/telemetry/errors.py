from __future__ import annotations

from config.domain_exceptions import DomainError, NotFoundError, ServiceUnavailableError, ValidationError


class IngestError(DomainError):
    """Base class for failures surfaced by the ingestion pipeline."""


class InvalidTelemetryEvent(IngestError, ValidationError):
    pass


class DeviceNotFound(IngestError, NotFoundError):
    def __init__(self, device_id: str):
        self.device_id = device_id
        super().__init__(f"Device '{device_id}' is not registered.")


class PersistenceFailure(IngestError, ServiceUnavailableError):
    """The telemetry append (or its presence update) could not be committed."""
