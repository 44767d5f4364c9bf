"""Error alerting via a form endpoint (e.g. Formspree).

Alert delivery is best effort: notify() reports whether the alert was
delivered and never raises.
"""

import logging
import traceback

import httpx

from .config import Settings
from .models import utc_now_iso

logger = logging.getLogger(__name__)


def build_payload(error: BaseException | str, context: str, settings: Settings) -> dict:
    """Alert payload posted to the form endpoint."""
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    else:
        message = error or "Unknown error"
        stack = ""

    return {
        "app": settings.app_name,
        "error": message,
        "context": context,
        "stack": stack,
        "timestamp": utc_now_iso(),
        "environment": settings.environment,
    }


class ErrorAlert:
    """Sends error alerts to FORM_ENDPOINT."""

    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self.client = client

    def notify(self, error: BaseException | str, context: str = "") -> bool:
        """Log the error locally and deliver it externally if configured."""
        try:
            payload = build_payload(error, context, self.settings)
        except Exception:
            logger.exception("Could not build alert payload")
            return False

        logger.error("[ERROR ALERT] %s: %s (context: %s)", payload["app"], payload["error"], context)

        if self.settings.use_mock_data:
            logger.info("[MOCK MODE] Skipping external error alert")
            return True

        if not self.settings.form_endpoint:
            logger.warning("No FORM_ENDPOINT configured - skipping external alert")
            return False

        try:
            response = self._post(payload)
        except httpx.HTTPError as e:
            logger.error("Failed to send alert: %s", e)
            return False

        if response.is_error:
            logger.error("Failed to send alert: HTTP %s", response.status_code)
            return False
        return True

    def _post(self, payload: dict) -> httpx.Response:
        headers = {"Accept": "application/json"}
        timeout = self.settings.request_timeout
        if self.client is not None:
            return self.client.post(self.settings.form_endpoint, json=payload, headers=headers, timeout=timeout)
        return httpx.post(self.settings.form_endpoint, json=payload, headers=headers, timeout=timeout)
