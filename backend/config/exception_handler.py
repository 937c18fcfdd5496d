from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from config import domain_exceptions as domain

logger = logging.getLogger(__name__)

_DRF_STATUS_NAMES: tuple[tuple[type[Exception], str], ...] = (
    (drf_exceptions.ValidationError, "validation_error"),
    (drf_exceptions.ParseError, "bad_request"),
    (drf_exceptions.UnsupportedMediaType, "bad_request"),
    (drf_exceptions.NotAuthenticated, "unauthorized"),
    (drf_exceptions.AuthenticationFailed, "unauthorized"),
    (drf_exceptions.PermissionDenied, "forbidden"),
    (drf_exceptions.NotFound, "not_found"),
    (drf_exceptions.MethodNotAllowed, "method_not_allowed"),
    (drf_exceptions.Throttled, "rate_limited"),
)

# Most specific classes first: subclasses of NotFoundError/ValidationError live in every app.
_DOMAIN_STATUS: tuple[tuple[type[domain.DomainError], str, int], ...] = (
    (domain.GatewayValidationError, "validation_error", status.HTTP_400_BAD_REQUEST),
    (domain.ValidationError, "validation_error", status.HTTP_400_BAD_REQUEST),
    (domain.NotFoundError, "not_found", status.HTTP_404_NOT_FOUND),
    (domain.ConfigurationError, "configuration_error", status.HTTP_503_SERVICE_UNAVAILABLE),
    (domain.ServiceUnavailableError, "service_unavailable", status.HTTP_503_SERVICE_UNAVAILABLE),
)


def _error_response(
    *,
    error_status: str,
    message: str,
    http_status: int,
    details: dict[str, list[str]] | None = None,
    gateway: str | None = None,
    operation: str | None = None,
    error: str | None = None,
) -> Response:
    error_body: dict[str, object] = {"status": error_status, "message": message}
    if details:
        error_body["details"] = details
    if gateway:
        error_body["gateway"] = gateway
    if operation:
        error_body["operation"] = operation
    if error:
        error_body["error"] = error
    return Response({"error": error_body}, status=http_status)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _extract_first_message(data: Any) -> str | None:
    if isinstance(data, str):
        return data or None
    if _is_sequence(data):
        return next((item for item in data if isinstance(item, str) and item), None)
    if not isinstance(data, Mapping):
        return None

    for key in ("detail", "message"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value

    for key, value in data.items():
        if _is_sequence(value) and value and isinstance(value[0], str):
            return value[0] if key == "non_field_errors" else f"{key}: {value[0]}"
        if isinstance(value, str) and value:
            return f"{key}: {value}"
    return None


def _flatten_error_details(details: Any) -> dict[str, list[str]]:
    """Flatten nested serializer errors into dotted paths (`payload.brightness`)."""
    out: dict[str, list[str]] = {}

    def walk(path: str, value: Any) -> None:
        if isinstance(value, Mapping):
            for key, child in value.items():
                walk(f"{path}.{key}" if path else str(key), child)
            return
        if _is_sequence(value):
            if all(isinstance(item, (str, bytes)) or not isinstance(item, (Mapping, Sequence)) for item in value):
                out.setdefault(path or "non_field_errors", []).extend(str(item) for item in value)
                return
            for idx, item in enumerate(value):
                walk(f"{path}.{idx}" if path else str(idx), item)
            return
        out.setdefault(path or "non_field_errors", []).append(str(value))

    walk("", details)
    return out


def _drf_error_status(exc: Exception, response: Response) -> str:
    for exc_type, name in _DRF_STATUS_NAMES:
        if isinstance(exc, exc_type):
            return name
    if response.status_code >= 500:
        return "server_error"
    return "bad_request"


def _wrap_drf_error(exc: Exception, response: Response) -> Response:
    details: dict[str, list[str]] | None = None
    message = _extract_first_message(response.data) or "Request failed."

    if isinstance(exc, drf_exceptions.ValidationError):
        details = _flatten_error_details(response.data)
        if len(details) == 1:
            (messages,) = details.values()
            message = messages[0] if messages else "One or more fields failed validation."
        else:
            message = "One or more fields failed validation."

    return _error_response(
        error_status=_drf_error_status(exc, response),
        message=message,
        http_status=response.status_code,
        details=details,
    )


def custom_exception_handler(exc: Exception, context):
    """
    Central exception->HTTP mapping for domain/use-case exceptions.

    Views stay thin: they raise meaningful exceptions and this layer turns them into
    `{"error": {"status", "message", ...}}` responses.
    """

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _wrap_drf_error(exc, response)

    if isinstance(exc, domain.GatewayError):
        gateway = getattr(exc, "gateway_name", None)
        if isinstance(exc, domain.GatewayUnavailableError):
            logger.warning("Gateway unavailable: %s - %s", gateway or "unknown", exc)
            error_status, http_status = "service_unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
        else:
            logger.warning("Gateway error: %s - %s", gateway or "unknown", exc)
            error_status, http_status = "gateway_error", status.HTTP_502_BAD_GATEWAY
        return _error_response(
            error_status=error_status,
            message=str(exc),
            http_status=http_status,
            gateway=gateway,
            operation=getattr(exc, "operation", None),
            error=getattr(exc, "error", None),
        )

    for exc_type, error_status, http_status in _DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return _error_response(
                error_status=error_status,
                message=str(exc),
                http_status=http_status,
                gateway=getattr(exc, "gateway_name", None),
            )

    if isinstance(exc, domain.DomainError):
        return _error_response(
            error_status="bad_request",
            message=str(exc),
            http_status=status.HTTP_400_BAD_REQUEST,
        )

    logger.exception(
        "Unhandled exception in API view: %s",
        context.get("view").__class__.__name__ if context.get("view") else "unknown",
        exc_info=exc,
    )
    return None
