"""Unit tests for the notification webhook client"""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from buddy_booking.domain.models import SessionStatus, SessionTransition
from buddy_booking.infrastructure.clients.notifications import NotificationClient, transition_payload


def _transition() -> SessionTransition:
    return SessionTransition(
        session_id="session-1",
        previous_status=SessionStatus.REQUESTED,
        new_status=SessionStatus.CONFIRMED,
        occurred_at=datetime(2026, 10, 19, 3, 0, 0, 123456, tzinfo=timezone.utc),
        actor_id="buddy-1",
    )


def test_transition_payload_keeps_microseconds():
    payload = transition_payload(_transition())

    assert payload == {
        "event": "SESSION_TRANSITION",
        "session_id": "session-1",
        "previous_status": "requested",
        "new_status": "confirmed",
        "actor_id": "buddy-1",
        "timestamp": "2026-10-19T03:00:00.123456+00:00",
    }


def test_send_event_posts_payload():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(200)

    client = NotificationClient("http://notify.test/hook", transport=httpx.MockTransport(handler))
    asyncio.run(client.send_event({"event": "PING"}))

    assert received == [{"event": "PING"}]


def test_send_event_retries_then_succeeds():
    statuses = iter([503, 502, 200])
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(next(statuses))

    client = NotificationClient("http://notify.test/hook", transport=httpx.MockTransport(handler))
    client.backoff_base = 0

    asyncio.run(client.send_event({"event": "PING"}))

    assert len(calls) == 3


def test_send_event_gives_up_after_max_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500)

    client = NotificationClient("http://notify.test/hook", transport=httpx.MockTransport(handler))
    client.backoff_base = 0
    client.max_retries = 3

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.send_event({"event": "PING"}))
    assert len(calls) == 3


def test_disabled_without_url():
    client = NotificationClient()

    assert client.enabled is False
    asyncio.run(client.send_event({"event": "PING"}))  # No transport, no request
