"""
Webhook notification sink.

Posts alert and purchase order events as JSON. Transport errors and 5xx
responses are retried with exponential backoff; anything still failing
is raised as NotificationDeliveryError.
"""

from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.core.entities.alert import Alert
from ranch_inventory.core.entities.purchase_order import PurchaseOrder
from ranch_inventory.core.exceptions import ConfigurationError, NotificationDeliveryError
from ranch_inventory.core.interfaces.notification import INotificationSink

logger = get_logger(__name__)

CHANNEL = "webhook"


class _ServerError(Exception):
    """Retryable 5xx response."""


class WebhookNotificationSink(INotificationSink):
    """Delivers notifications to an HTTP endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings().notifications
        self.url = url or settings.webhook_url
        if not self.url:
            raise ConfigurationError("Webhook URL is not configured (NOTIFY_WEBHOOK_URL)")
        self.timeout = timeout if timeout is not None else settings.timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay
        self.purchasing_recipient = settings.purchasing_recipient
        self._transport = transport

    async def send_alert(self, alert: Alert) -> None:
        await self._deliver(
            {"event": "inventory.alert", "alert": alert.model_dump(mode="json")}
        )

    async def send_purchase_order(self, order: PurchaseOrder) -> None:
        await self._deliver(
            {
                "event": "inventory.purchase_order",
                "recipient": self.purchasing_recipient,
                "order": order.model_dump(mode="json"),
            }
        )

    def _get_retry_decorator(self) -> Any:
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8,
            ),
            retry=retry_if_exception_type((httpx.TransportError, _ServerError)),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "webhook_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _post(self, payload: dict) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=payload)

        if response.status_code >= 500:
            raise _ServerError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise NotificationDeliveryError(CHANNEL, f"HTTP {response.status_code}")

    async def _deliver(self, payload: dict) -> None:
        try:
            await self._get_retry_decorator()(self._post)(payload)
        except (httpx.TransportError, _ServerError) as e:
            logger.error("webhook_delivery_failed", event=payload["event"], error=str(e))
            raise NotificationDeliveryError(CHANNEL, str(e)) from e

        logger.debug("webhook_delivered", event=payload["event"])
