"""Wiring of the booking core's shared collaborators"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from buddy_booking.config import Settings
from buddy_booking.infrastructure.events import EventBus
from buddy_booking.infrastructure.locks import KeyedLock
from buddy_booking.services.accounts import AccountDirectory
from buddy_booking.services.booking import BookingManager
from buddy_booking.services.ledger import CreditLedger


@dataclass
class BookingCore:
    """One set of services sharing a lock registry and an event bus"""

    accounts: AccountDirectory
    ledger: CreditLedger
    bookings: BookingManager
    events: EventBus
    locks: KeyedLock


def build_core(
    session_factory: sessionmaker,
    config: Settings,
    clock: Optional[Callable[[], datetime]] = None,
) -> BookingCore:
    """Build the services; every caller in a process must share the returned instance"""
    locks = KeyedLock(timeout=config.lock_timeout_seconds)
    events = EventBus()
    ledger = CreditLedger(session_factory, locks, events)
    accounts = AccountDirectory(
        session_factory,
        ledger,
        locks,
        learner_starting_credits=config.learner_starting_credits,
    )
    bookings = BookingManager(
        session_factory,
        accounts,
        ledger,
        locks,
        events,
        tz=config.tz,
        horizon_days=config.booking_horizon_days,
        booking_cost=config.booking_cost_credits,
        refund_on_release=config.refund_on_release,
        clock=clock,
    )
    return BookingCore(accounts=accounts, ledger=ledger, bookings=bookings, events=events, locks=locks)
