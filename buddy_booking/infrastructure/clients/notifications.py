"""Notification webhook client with exponential backoff retry logic"""

import asyncio
from typing import Any, Dict

import httpx

from buddy_booking.config import settings
from buddy_booking.domain.models import SessionTransition
from buddy_booking.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram


def transition_payload(transition: SessionTransition) -> Dict[str, Any]:
    return {
        "event": "SESSION_TRANSITION",
        "session_id": transition.session_id,
        "previous_status": transition.previous_status.value if transition.previous_status else None,
        "new_status": transition.new_status.value,
        "actor_id": transition.actor_id,
        "timestamp": transition.occurred_at.isoformat(),
    }


class NotificationClient:
    """Client for pushing committed booking events to the notification service"""

    def __init__(
        self,
        webhook_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Deliver one event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on HTTP error statuses and network failures
        - Tracks latency histogram and failure counter

        Args:
            payload: Event data, see transition_payload()
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError):
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
