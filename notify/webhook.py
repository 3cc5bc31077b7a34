"""Best-effort chat webhook notifications."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from core.errors import RefreshError
from core.logging_utils import redact_secret

LOGGER = logging.getLogger("esrefresh.notify")


class NotificationDeliveryFailure(RefreshError):
    """Raised when the webhook endpoint rejects or cannot receive a message."""


class WebhookNotifier:
    """Post plain text messages to a Discord-compatible webhook."""

    def __init__(
        self,
        url: Optional[str],
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = (url or "").strip() or None
        self._timeout = float(timeout)
        self._session = session or requests.Session()
        self.sent: list[str] = []

    @property
    def enabled(self) -> bool:
        return self._url is not None

    def describe(self) -> str:
        return redact_secret(self._url) if self._url else "disabled"

    def deliver(self, message: str) -> None:
        if not self._url:
            return
        try:
            response = self._session.post(
                self._url,
                json={"content": message},
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise NotificationDeliveryFailure(f"webhook unreachable: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise NotificationDeliveryFailure(f"webhook returned {response.status_code}")

    def send(self, message: str) -> bool:
        """Deliver *message*, returning False instead of raising on failure."""

        if not self.enabled:
            LOGGER.debug("notification skipped", extra={"reason": "no_webhook"})
            return False
        try:
            self.deliver(message)
        except NotificationDeliveryFailure as exc:
            LOGGER.warning("notification failed", extra={"error": str(exc), "webhook": self.describe()})
            return False
        self.sent.append(message)
        return True


__all__ = ["NotificationDeliveryFailure", "WebhookNotifier"]
