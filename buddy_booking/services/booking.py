"""Booking transaction manager: reserve a slot and charge the learner as one unit"""

import logging
from datetime import datetime, tzinfo
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from buddy_booking.domain.exceptions import (
    AccountNotFoundError,
    InsufficientCreditError,
    InvalidAccountRoleError,
    InvalidSlotError,
    SessionNotFoundError,
    SlotAlreadyBookedError,
    SlotUnavailableError,
)
from buddy_booking.domain.lifecycle import REFUNDABLE_STATUSES, authorize_transition
from buddy_booking.domain.models import (
    Account,
    BalanceChange,
    BookingSession,
    Role,
    SessionStatus,
    SessionTransition,
    Slot,
)
from buddy_booking.domain.slots import SlotSequence, is_offerable, resolve_slots
from buddy_booking.infrastructure.database.repositories import (
    AccountRepository,
    LedgerRepository,
    SessionRepository,
    account_from_record,
    session_from_record,
)
from buddy_booking.infrastructure.database.session import session_scope
from buddy_booking.infrastructure.events import SESSION_TRANSITIONS, EventBus
from buddy_booking.infrastructure.locks import KeyedLock, account_lock_key
from buddy_booking.services.accounts import AccountDirectory
from buddy_booking.services.ledger import CreditLedger
from buddy_booking.utils.date_utils import localize, utcnow

logger = logging.getLogger(__name__)


class BookingManager:
    """
    Owns every write to sessions and slot reservations.

    Locking discipline: an operation on a slot takes the slot's lock first and
    the learner's account lock second. Credit-only operations take just the
    account lock, so no two code paths ever wait on each other in opposite
    order. Database constraints (reservation primary key, non-negative
    balance) back the locks up when several processes share a database.

    Events are published after commit and after the locks are released, so
    subscribers may call back into the core. Events for one key can therefore
    arrive out of commit order when writers race; subscribers that need the
    latest state should read it rather than replay events.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        accounts: AccountDirectory,
        ledger: CreditLedger,
        locks: KeyedLock,
        events: EventBus,
        tz: tzinfo,
        horizon_days: int = 7,
        booking_cost: int = 1,
        refund_on_release: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._accounts = accounts
        self._ledger = ledger
        self._locks = locks
        self._events = events
        self.tz = tz
        self.horizon_days = horizon_days
        self.booking_cost = booking_cost
        self.refund_on_release = refund_on_release
        self._clock = clock or (lambda: datetime.now(tz))

    def now(self) -> datetime:
        return localize(self._clock(), self.tz)

    # Reads

    def resolve_slots(
        self,
        buddy_id: str,
        horizon_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> SlotSequence:
        """
        Offerable slots for a buddy, from the buddy's current grid.

        horizon_days may shorten the window but never extends it past the
        booking horizon, so every listed slot can be requested.
        """
        buddy = self._require_role(buddy_id, Role.BUDDY)
        if horizon_days is None:
            horizon_days = self.horizon_days
        return resolve_slots(
            buddy_id,
            buddy.availability,
            now or self.now(),
            self.tz,
            horizon_days=min(horizon_days, self.horizon_days),
        )

    def get_session(self, session_id: str) -> BookingSession:
        with session_scope(self._session_factory) as db:
            record = SessionRepository(db).get(session_id)
            if record is None:
                raise SessionNotFoundError(f"Session {session_id} not found")
            return session_from_record(record)

    def list_sessions(
        self,
        account_id: str,
        statuses: Optional[Iterable[SessionStatus]] = None,
        limit: int = 100,
    ) -> List[BookingSession]:
        self._accounts.get_account(account_id)
        with session_scope(self._session_factory) as db:
            records = SessionRepository(db).list_for_account(account_id, statuses, limit=limit)
            return [session_from_record(r) for r in records]

    def pending_requests(self, buddy_id: str) -> List[BookingSession]:
        """Requests still waiting for the buddy's decision, oldest first"""
        self._require_role(buddy_id, Role.BUDDY)
        with session_scope(self._session_factory) as db:
            records = SessionRepository(db).list_for_buddy(buddy_id, SessionStatus.REQUESTED)
            return [session_from_record(r) for r in records]

    def upcoming_sessions(self, account_id: str, now: Optional[datetime] = None) -> List[BookingSession]:
        """Confirmed sessions that have not started yet, soonest first"""
        reference = localize(now, self.tz) if now else self.now()
        sessions = self.list_sessions(account_id, [SessionStatus.CONFIRMED], limit=1000)
        upcoming = [s for s in sessions if s.slot.starts_at(self.tz) > reference]
        return sorted(upcoming, key=lambda s: s.slot.starts_at(self.tz))

    # Writes

    def request_booking(
        self,
        learner_id: str,
        buddy_id: str,
        slot: Slot,
        now: Optional[datetime] = None,
    ) -> BookingSession:
        """
        Reserve slot for the learner and charge one booking's worth of credit.

        Preconditions, checked in order while holding the slot lock and the
        learner's account lock:
        1. slot is offerable per the buddy's current grid and the horizon
        2. no requested/confirmed session already holds the slot
        3. learner balance covers the booking cost

        The session, its reservation marker and the debit commit together or
        not at all.

        Raises:
            AccountNotFoundError, InvalidAccountRoleError, InvalidSlotError: bad input
            SlotUnavailableError: precondition 1
            SlotAlreadyBookedError: precondition 2, or lost a cross-process race
            InsufficientCreditError: precondition 3
        """
        self._require_role(learner_id, Role.LEARNER)
        self._require_role(buddy_id, Role.BUDDY)
        if slot.buddy_id != buddy_id:
            raise InvalidSlotError(f"Slot belongs to buddy {slot.buddy_id}, not {buddy_id}")

        reference = localize(now, self.tz) if now else self.now()

        with self._locks.hold(slot.lock_key), self._locks.hold(account_lock_key(learner_id)):
            try:
                with session_scope(self._session_factory) as db:
                    buddy = AccountRepository(db).get(buddy_id)
                    grid = account_from_record(buddy).availability
                    if not is_offerable(slot, grid, reference, self.horizon_days, self.tz):
                        raise SlotUnavailableError(
                            f"Slot {slot.date.isoformat()} {slot.bucket.key} is not offered by {buddy_id}"
                        )

                    sessions = SessionRepository(db)
                    if sessions.get_reservation(slot) is not None:
                        raise SlotAlreadyBookedError(
                            f"Slot {slot.date.isoformat()} {slot.bucket.key} of {buddy_id} is already booked"
                        )

                    balance = LedgerRepository(db).get_balance(learner_id)
                    if balance is None or balance < self.booking_cost:
                        raise InsufficientCreditError(
                            f"Account {learner_id} has {balance} credits, {self.booking_cost} required"
                        )

                    record = sessions.create(
                        buddy_id=buddy_id,
                        learner_id=learner_id,
                        slot=slot,
                        credits_charged=self.booking_cost,
                        created_at=utcnow(),
                    )
                    charge = self._ledger.apply_debit(
                        db, learner_id, self.booking_cost, reason="booking", session_id=record.id
                    )
                    booked = session_from_record(record)
            except IntegrityError as e:
                raise SlotAlreadyBookedError(
                    f"Slot {slot.date.isoformat()} {slot.bucket.key} of {buddy_id} is already booked"
                ) from e

        self._publish(
            SessionTransition(
                session_id=booked.id,
                previous_status=None,
                new_status=booked.status,
                occurred_at=booked.created_at,
                actor_id=learner_id,
            ),
            charge,
        )

        logger.info(
            "Booking requested",
            extra={
                "session_id": booked.id,
                "learner_id": learner_id,
                "buddy_id": buddy_id,
                "slot_date": slot.date.isoformat(),
                "bucket": slot.bucket.key,
                "balance_after": charge.new_balance,
            },
        )
        return booked

    def transition_session(self, session_id: str, actor_id: str, target: SessionStatus) -> BookingSession:
        """
        Move a session along one lifecycle edge.

        Leaving the active set frees the slot. Declined and cancelled sessions
        give the learner their credits back when refunds are enabled;
        completed sessions count towards the buddy's total.

        Raises:
            SessionNotFoundError: unknown session
            InvalidTransitionError: not an edge from the current status
            UnauthorizedTransitionError: actor lacks authority for the edge
        """
        target = SessionStatus(target)
        current = self.get_session(session_id)

        with self._locks.hold(current.slot.lock_key), self._locks.hold(account_lock_key(current.learner_id)):
            refund = None
            with session_scope(self._session_factory) as db:
                sessions = SessionRepository(db)
                record = sessions.get(session_id)
                session = session_from_record(record)
                authorize_transition(session, actor_id, target)

                previous = session.status
                occurred_at = utcnow()
                sessions.set_status(record, target, occurred_at)

                if target in REFUNDABLE_STATUSES and self.refund_on_release and record.credits_charged > 0:
                    refund = self._ledger.apply_credit(
                        db, session.learner_id, record.credits_charged, reason="refund", session_id=session_id
                    )
                if target is SessionStatus.COMPLETED:
                    AccountRepository(db).increment_total_sessions(session.buddy_id)

                updated = session_from_record(record)

        self._publish(
            SessionTransition(
                session_id=session_id,
                previous_status=previous,
                new_status=target,
                occurred_at=occurred_at,
                actor_id=actor_id,
            ),
            refund,
        )

        logger.info(
            "Session transitioned",
            extra={
                "session_id": session_id,
                "actor_id": actor_id,
                "previous_status": previous.value,
                "new_status": target.value,
                "refunded": refund is not None,
            },
        )
        return updated

    # Helpers

    def _require_role(self, account_id: str, role: Role) -> Account:
        account = self._accounts.get_account(account_id)
        if account.role is not role:
            raise InvalidAccountRoleError(f"Account {account_id} is a {account.role.value}, not a {role.value}")
        return account

    def _publish(self, transition: SessionTransition, change: Optional[BalanceChange]) -> None:
        self._events.publish(SESSION_TRANSITIONS, transition, key=transition.session_id)
        if change is not None:
            self._ledger.publish(change)
