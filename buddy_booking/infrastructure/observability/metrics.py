"""Prometheus metrics for booking outcomes, session lifecycle, credits and webhook performance"""

from prometheus_client import Counter, Histogram

from buddy_booking.domain.models import BalanceChange, SessionTransition
from buddy_booking.infrastructure.events import CREDIT_BALANCES, SESSION_TRANSITIONS, EventBus

# Booking metrics
booking_counter = Counter(
    "buddy_booking_requests_total",
    "Booking requests by outcome",
    ["outcome"],  # booked | SlotUnavailable | SlotAlreadyBooked | InsufficientCredit | ...
)

session_transition_counter = Counter(
    "buddy_session_transitions_total",
    "Committed session status changes",
    ["status"],
)

credit_change_counter = Counter(
    "buddy_credit_changes_total",
    "Committed credit balance changes",
    ["reason"],  # booking | refund | starting_grant | debit | credit
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_booking(outcome: str) -> None:
    """Record one booking attempt; outcome is "booked" or the failure code"""
    booking_counter.labels(outcome=outcome).inc()


def _on_transition(transition: SessionTransition) -> None:
    session_transition_counter.labels(status=transition.new_status.value).inc()


def _on_balance_change(change: BalanceChange) -> None:
    credit_change_counter.labels(reason=change.reason).inc()


def register_event_metrics(events: EventBus) -> None:
    """Count every committed transition and balance change published on the bus"""
    events.subscribe(SESSION_TRANSITIONS, _on_transition)
    events.subscribe(CREDIT_BALANCES, _on_balance_change)
