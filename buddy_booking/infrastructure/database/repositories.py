"""Data access layer for accounts, sessions, reservations and ledger entries"""

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from buddy_booking.domain.availability import AvailabilityGrid, TimeBucket
from buddy_booking.domain.models import (
    Account,
    BookingSession,
    LedgerEntry,
    Role,
    SessionStatus,
    Slot,
)
from buddy_booking.infrastructure.database.models import (
    AccountRecord,
    BookingSessionRecord,
    CreditLedgerRecord,
    SlotReservationRecord,
)
from buddy_booking.utils.date_utils import as_utc


def account_from_record(record: AccountRecord) -> Account:
    return Account(
        id=record.id,
        role=Role(record.role),
        nickname=record.nickname,
        credit_balance=record.credit_balance,
        availability=AvailabilityGrid.from_dict(record.availability),
        total_sessions=record.total_sessions,
        review_count=record.review_count,
        average_rating=record.average_rating,
        created_at=as_utc(record.created_at),
    )


def session_from_record(record: BookingSessionRecord) -> BookingSession:
    return BookingSession(
        id=record.id,
        buddy_id=record.buddy_id,
        learner_id=record.learner_id,
        slot=Slot(buddy_id=record.buddy_id, date=record.slot_date, bucket=TimeBucket(record.bucket)),
        status=SessionStatus(record.status),
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
        credits_charged=record.credits_charged,
    )


class AccountRepository:
    """Repository for learner and buddy accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: str) -> Optional[AccountRecord]:
        return self.db.get(AccountRecord, account_id)

    def create(
        self,
        account_id: str,
        role: Role,
        nickname: str,
        availability: AvailabilityGrid,
    ) -> AccountRecord:
        """Insert a new account with an empty balance; grants go through the ledger"""
        record = AccountRecord(
            id=account_id,
            role=role.value,
            nickname=nickname,
            credit_balance=0,
            availability=availability.to_dict(),
        )
        self.db.add(record)
        self.db.flush()
        return record

    def set_availability(self, record: AccountRecord, grid: AvailabilityGrid) -> None:
        record.availability = grid.to_dict()
        self.db.flush()

    def increment_total_sessions(self, account_id: str) -> None:
        (
            self.db.query(AccountRecord)
            .filter(AccountRecord.id == account_id)
            .update({AccountRecord.total_sessions: AccountRecord.total_sessions + 1}, synchronize_session=False)
        )


class LedgerRepository:
    """Balance mutations and the ledger audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def get_balance(self, account_id: str) -> Optional[int]:
        return (
            self.db.query(AccountRecord.credit_balance)
            .filter(AccountRecord.id == account_id)
            .scalar()
        )

    def debit(self, account_id: str, amount: int) -> Optional[int]:
        """
        Conditionally decrement the balance.

        The WHERE clause makes the check and the decrement one statement, so the
        balance cannot go negative even if two writers race past a lock.

        Returns:
            New balance, or None when the balance is short or the account is missing
        """
        updated = (
            self.db.query(AccountRecord)
            .filter(AccountRecord.id == account_id, AccountRecord.credit_balance >= amount)
            .update(
                {AccountRecord.credit_balance: AccountRecord.credit_balance - amount},
                synchronize_session=False,
            )
        )
        if updated == 0:
            return None
        return self.get_balance(account_id)

    def credit(self, account_id: str, amount: int) -> Optional[int]:
        updated = (
            self.db.query(AccountRecord)
            .filter(AccountRecord.id == account_id)
            .update(
                {AccountRecord.credit_balance: AccountRecord.credit_balance + amount},
                synchronize_session=False,
            )
        )
        if updated == 0:
            return None
        return self.get_balance(account_id)

    def add_entry(
        self,
        account_id: str,
        delta: int,
        balance_after: int,
        reason: str,
        created_at: datetime,
        session_id: Optional[str] = None,
    ) -> CreditLedgerRecord:
        entry = CreditLedgerRecord(
            account_id=account_id,
            delta=delta,
            balance_after=balance_after,
            reason=reason,
            session_id=session_id,
            created_at=created_at,
        )
        self.db.add(entry)
        return entry

    def history(self, account_id: str, limit: int = 50) -> List[LedgerEntry]:
        """Most recent entries first"""
        rows = (
            self.db.query(CreditLedgerRecord)
            .filter(CreditLedgerRecord.account_id == account_id)
            .order_by(CreditLedgerRecord.id.desc())
            .limit(limit)
            .all()
        )
        return [
            LedgerEntry(
                account_id=row.account_id,
                delta=row.delta,
                balance_after=row.balance_after,
                reason=row.reason,
                created_at=as_utc(row.created_at),
                session_id=row.session_id,
            )
            for row in rows
        ]


class SessionRepository:
    """Repository for booking sessions and their slot reservations"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        buddy_id: str,
        learner_id: str,
        slot: Slot,
        credits_charged: int,
        created_at: datetime,
    ) -> BookingSessionRecord:
        """Insert a requested session together with its reservation marker"""
        record = BookingSessionRecord(
            buddy_id=buddy_id,
            learner_id=learner_id,
            slot_date=slot.date,
            bucket=int(slot.bucket),
            status=SessionStatus.REQUESTED.value,
            credits_charged=credits_charged,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing

        self.db.add(
            SlotReservationRecord(
                buddy_id=buddy_id,
                slot_date=slot.date,
                bucket=int(slot.bucket),
                session_id=record.id,
                created_at=created_at,
            )
        )
        self.db.flush()  # Surfaces a duplicate reservation as IntegrityError here
        return record

    def get(self, session_id: str) -> Optional[BookingSessionRecord]:
        return self.db.get(BookingSessionRecord, session_id)

    def get_reservation(self, slot: Slot) -> Optional[SlotReservationRecord]:
        return self.db.get(SlotReservationRecord, (slot.buddy_id, slot.date, int(slot.bucket)))

    def set_status(self, record: BookingSessionRecord, status: SessionStatus, updated_at: datetime) -> None:
        record.status = status.value
        record.updated_at = updated_at
        if not status.is_active:
            (
                self.db.query(SlotReservationRecord)
                .filter(SlotReservationRecord.session_id == record.id)
                .delete(synchronize_session=False)
            )
        self.db.flush()

    def list_for_account(
        self,
        account_id: str,
        statuses: Optional[Iterable[SessionStatus]] = None,
        limit: int = 100,
    ) -> List[BookingSessionRecord]:
        """Sessions where the account is buddy or learner, newest first"""
        query = self.db.query(BookingSessionRecord).filter(
            (BookingSessionRecord.buddy_id == account_id) | (BookingSessionRecord.learner_id == account_id)
        )
        if statuses:
            query = query.filter(BookingSessionRecord.status.in_([s.value for s in statuses]))
        return query.order_by(BookingSessionRecord.created_at.desc()).limit(limit).all()

    def list_for_buddy(self, buddy_id: str, status: SessionStatus) -> List[BookingSessionRecord]:
        """Sessions of one status addressed to a buddy, oldest request first"""
        return (
            self.db.query(BookingSessionRecord)
            .filter(BookingSessionRecord.buddy_id == buddy_id, BookingSessionRecord.status == status.value)
            .order_by(BookingSessionRecord.created_at.asc())
            .all()
        )
