"""SQLAlchemy ORM models for accounts, sessions, slot reservations and the credit ledger"""

import uuid
from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from buddy_booking.utils.date_utils import utcnow

Base = declarative_base()


class AccountRecord(Base):
    """Learner or buddy account"""

    __tablename__ = "account"

    id = Column(String(128), primary_key=True)
    role = Column(String(16), nullable=False)
    nickname = Column(Text, nullable=False)
    credit_balance = Column(Integer, nullable=False, default=0)
    availability = Column(JSON, nullable=False, default=dict)
    total_sessions = Column(Integer, nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("credit_balance >= 0", name="ck_account_credit_balance_non_negative"),
        CheckConstraint("role IN ('learner', 'buddy')", name="ck_account_role"),
    )


class BookingSessionRecord(Base):
    """Booking between one learner and one buddy; rows are transitioned, never deleted"""

    __tablename__ = "booking_session"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    buddy_id = Column(String(128), ForeignKey("account.id"), nullable=False, index=True)
    learner_id = Column(String(128), ForeignKey("account.id"), nullable=False, index=True)
    slot_date = Column(Date, nullable=False)
    bucket = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default="requested", index=True)
    credits_charged = Column(Integer, nullable=False, default=1)
    # Set in Python so ordering keeps microsecond precision on every backend
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    reservation = relationship("SlotReservationRecord", back_populates="session", uselist=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('requested', 'confirmed', 'declined', 'completed', 'cancelled')",
            name="ck_booking_session_status",
        ),
        CheckConstraint("bucket BETWEEN 0 AND 3", name="ck_booking_session_bucket"),
    )


class SlotReservationRecord(Base):
    """Marker held by the single active session of a (buddy, date, bucket) slot"""

    __tablename__ = "slot_reservation"

    buddy_id = Column(String(128), ForeignKey("account.id"), primary_key=True)
    slot_date = Column(Date, primary_key=True)
    bucket = Column(Integer, primary_key=True)
    session_id = Column(String(36), ForeignKey("booking_session.id"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    session = relationship("BookingSessionRecord", back_populates="reservation")


class CreditLedgerRecord(Base):
    """Append-only audit trail of balance changes"""

    __tablename__ = "credit_ledger_entry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(128), ForeignKey("account.id"), nullable=False, index=True)
    delta = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    session_id = Column(String(36), ForeignKey("booking_session.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("balance_after >= 0", name="ck_credit_ledger_balance_after_non_negative"),
    )
