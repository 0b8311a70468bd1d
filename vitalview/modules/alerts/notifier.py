"""Notification channels. ``send`` reports delivery as a bool; transport errors raise ``DeliveryFailure``."""

from datetime import datetime, timezone
from typing import Protocol

import httpx
import structlog

from vitalview.core.exceptions import DeliveryFailure
from vitalview.modules.alerts.manager import AlertStreamManager

log = structlog.get_logger()


class Notifier(Protocol):
    async def send(self, recipient: str, subject: str, body: str) -> bool: ...


class StreamNotifier:
    """Pushes notifications to in-process SSE subscribers.

    A message with no listening subscriber counts as undelivered.
    """

    def __init__(self, manager: AlertStreamManager) -> None:
        self._manager = manager

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        payload = {
            "event": "alert",
            "recipient": recipient,
            "subject": subject,
            "body": body,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return self._manager.publish(recipient, payload) > 0


class WebhookNotifier:
    """POSTs each notification as JSON to an external relay (mail, pager, chat bridge)."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        try:
            response = await self._get_client().post(
                self._url,
                json={"recipient": recipient, "subject": subject, "body": body},
            )
        except httpx.HTTPError as exc:
            raise DeliveryFailure(f"webhook transport error: {exc!r}") from exc

        if response.is_error:
            log.warning(
                "webhook rejected notification",
                status_code=response.status_code,
                recipient=recipient,
            )
            return False
        return True
