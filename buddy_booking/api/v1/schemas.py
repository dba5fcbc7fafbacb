"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime, tzinfo
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from buddy_booking.domain.availability import TimeBucket, parse_bucket
from buddy_booking.domain.exceptions import InvalidAvailabilityError
from buddy_booking.domain.models import Account, BookingSession, LedgerEntry, Role, SessionStatus, Slot


class SlotSchema(BaseModel):
    """Slot as sent by clients: a calendar date and a bucket key or label"""

    date: date
    bucket: str = Field(..., description="early_morning | morning | afternoon | evening, or a localized label")

    @field_validator("bucket")
    @classmethod
    def bucket_must_be_known(cls, value: str) -> str:
        try:
            return parse_bucket(value).key
        except InvalidAvailabilityError as e:
            raise ValueError(str(e)) from e

    def to_slot(self, buddy_id: str) -> Slot:
        return Slot(buddy_id=buddy_id, date=self.date, bucket=TimeBucket[self.bucket.upper()])


class SlotResponse(BaseModel):
    """
    Resolved slot with its start instant.

    bucket is the canonical key, never a display label: the labels' hour
    ranges do not match session start times, so starts_at is what to show.
    """

    buddy_id: str
    date: date
    bucket: str
    starts_at: datetime

    @classmethod
    def from_slot(cls, slot: Slot, tz: tzinfo) -> "SlotResponse":
        return cls(buddy_id=slot.buddy_id, date=slot.date, bucket=slot.bucket.key, starts_at=slot.starts_at(tz))


class SlotListResponse(BaseModel):
    """Response for GET /v1/buddies/{buddy_id}/slots"""

    buddy_id: str
    horizon_days: int
    slots: List[SlotResponse]


class CreateAccountRequest(BaseModel):
    """Request body for POST /v1/accounts"""

    account_id: str = Field(..., min_length=1, max_length=128, description="Identity provider user id")
    role: Role
    nickname: str = Field(..., min_length=1, description="Display name")
    availability: Dict[str, List[str]] = Field(default_factory=dict)


class AvailabilityRequest(BaseModel):
    """Request body for PUT /v1/accounts/{account_id}/availability"""

    availability: Dict[str, List[str]]


class AccountResponse(BaseModel):
    """Account as exposed to clients"""

    account_id: str
    role: Role
    nickname: str
    credit_balance: int
    availability: Dict[str, List[str]]
    total_sessions: int
    review_count: int
    average_rating: float

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            account_id=account.id,
            role=account.role,
            nickname=account.nickname,
            credit_balance=account.credit_balance,
            availability=account.availability.to_dict(),
            total_sessions=account.total_sessions,
            review_count=account.review_count,
            average_rating=account.average_rating,
        )


class BookingRequest(BaseModel):
    """Request body for POST /v1/bookings"""

    learner_id: str = Field(..., min_length=1)
    buddy_id: str = Field(..., min_length=1)
    slot: SlotSchema


class SessionResponse(BaseModel):
    """Booking session"""

    session_id: str
    buddy_id: str
    learner_id: str
    slot: SlotResponse
    status: SessionStatus
    credits_charged: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_session(cls, session: BookingSession, tz: tzinfo) -> "SessionResponse":
        return cls(
            session_id=session.id,
            buddy_id=session.buddy_id,
            learner_id=session.learner_id,
            slot=SlotResponse.from_slot(session.slot, tz),
            status=session.status,
            credits_charged=session.credits_charged,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class SessionListResponse(BaseModel):
    """Response for session listings"""

    account_id: str
    sessions: List[SessionResponse]


class TransitionRequest(BaseModel):
    """Request body for POST /v1/sessions/{session_id}/transitions"""

    actor_id: str = Field(..., min_length=1)
    target_status: SessionStatus


class LedgerEntrySchema(BaseModel):
    """Single balance change"""

    delta: int
    balance_after: int
    reason: str
    session_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntrySchema":
        return cls(
            delta=entry.delta,
            balance_after=entry.balance_after,
            reason=entry.reason,
            session_id=entry.session_id,
            created_at=entry.created_at,
        )


class LedgerResponse(BaseModel):
    """Response for GET /v1/accounts/{account_id}/ledger"""

    account_id: str
    credit_balance: int
    entries: List[LedgerEntrySchema]


class ErrorDetail(BaseModel):
    """Body of every domain error response"""

    code: str
    message: str
