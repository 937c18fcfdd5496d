"""
Generic webhook notification handler.

POSTs (or PUTs) `{"title", "message", "data"}` as JSON to a configured endpoint.
"""

import logging

import httpx

from .base import NotificationHandler, NotificationResult

logger = logging.getLogger(__name__)

_STATUS_ERRORS = {
    401: ("Authentication failed", "UNAUTHORIZED"),
    403: ("Access forbidden", "FORBIDDEN"),
    404: ("Webhook endpoint not found", "NOT_FOUND"),
    429: ("Rate limited. Try again later.", "RATE_LIMITED"),
}


class WebhookHandler(NotificationHandler):
    provider_type = "webhook"

    TIMEOUT = 10.0

    def validate_config(self, config: dict) -> list[str]:
        errors = []

        url = config.get("url", "")
        if not url:
            errors.append("Webhook URL is required")
        elif not url.startswith(("http://", "https://")):
            errors.append("URL must start with http:// or https://")

        method = str(config.get("method") or "POST").upper()
        if method not in ("POST", "PUT"):
            errors.append("Method must be POST or PUT")

        headers = config.get("headers")
        if headers is not None and not isinstance(headers, dict):
            errors.append("Headers must be an object of name/value pairs")

        return errors

    def send(
        self,
        config: dict,
        message: str,
        title: str | None = None,
        data: dict | None = None,
    ) -> NotificationResult:
        try:
            with httpx.Client(timeout=self.TIMEOUT) as client:
                response = client.request(
                    str(config.get("method") or "POST").upper(),
                    config["url"],
                    json=self._build_payload(message, title, data),
                    headers=self._build_headers(config),
                )
        except httpx.TimeoutException:
            logger.warning("Webhook request to %s timed out", config.get("url"))
            return NotificationResult.error("Request timed out", code="TIMEOUT")
        except httpx.RequestError as e:
            logger.warning("Webhook network error: %s", e)
            return NotificationResult.error(f"Network error: {e}", code="NETWORK_ERROR")

        if response.is_success:
            return NotificationResult.ok(f"Webhook returned {response.status_code}")
        message_text, code = _STATUS_ERRORS.get(
            response.status_code, (f"Webhook returned {response.status_code}", "API_ERROR")
        )
        return NotificationResult.error(message_text, code=code)

    def _build_headers(self, config: dict) -> dict:
        headers = {"Content-Type": "application/json"}
        headers.update({str(k): str(v) for k, v in (config.get("headers") or {}).items()})
        if token := config.get("bearer_token"):
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _build_payload(self, message: str, title: str | None, data: dict | None) -> dict:
        payload = {"message": message}
        if title:
            payload["title"] = title
        if data:
            payload["data"] = data
        return payload
