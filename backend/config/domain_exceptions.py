from __future__ import annotations


class DomainError(Exception):
    """
    Base class for predictable domain/use-case errors.

    Views raise these and let `config.exception_handler` translate them into HTTP responses;
    background paths (MQTT callbacks, rule evaluation) catch and log them instead.
    """


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class ServiceUnavailableError(DomainError):
    """A backing service (database, broker) could not complete the operation."""


class ConfigurationError(DomainError):
    """
    Missing/invalid server-side configuration required to perform an operation.
    """


class GatewayError(DomainError):
    """
    Base exception for device transport / outbound integration failures.

    Subclasses set `gateway_name` as a class or instance attribute.
    """

    gateway_name: str | None = None


class GatewayValidationError(ValidationError):
    gateway_name: str | None = None


class GatewayUnavailableError(GatewayError):
    """The gateway is not configured or its backing service cannot be reached."""
