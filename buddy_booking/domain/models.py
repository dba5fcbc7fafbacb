"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Optional

from buddy_booking.domain.availability import AvailabilityGrid, TimeBucket


class Role(str, Enum):
    """Account role, fixed at creation"""

    LEARNER = "learner"
    BUDDY = "buddy"


class SessionStatus(str, Enum):
    """Booking lifecycle status"""

    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


# Statuses that hold the slot's reservation marker
ACTIVE_STATUSES = frozenset({SessionStatus.REQUESTED, SessionStatus.CONFIRMED})


@dataclass
class Account:
    """Learner or buddy as seen by the booking core"""

    id: str
    role: Role
    nickname: str
    credit_balance: int = 0
    availability: AvailabilityGrid = field(default_factory=AvailabilityGrid)
    total_sessions: int = 0  # buddy only
    review_count: int = 0  # buddy only
    average_rating: float = 0.0  # buddy only
    created_at: Optional[datetime] = None


@dataclass(frozen=True, order=True)
class Slot:
    """Concrete bookable instant: one bucket of one calendar date for one buddy"""

    buddy_id: str
    date: date
    bucket: TimeBucket

    def starts_at(self, tz: tzinfo) -> datetime:
        return datetime.combine(self.date, self.bucket.start_time, tzinfo=tz)

    @property
    def lock_key(self) -> str:
        return f"slot:{self.buddy_id}:{self.date.isoformat()}:{self.bucket.key}"


@dataclass
class BookingSession:
    """One booking between a learner and a buddy for one slot"""

    id: str
    buddy_id: str
    learner_id: str
    slot: Slot
    status: SessionStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    credits_charged: int = 1


@dataclass(frozen=True)
class SessionTransition:
    """Committed status change, published to session.transitions"""

    session_id: str
    previous_status: Optional[SessionStatus]  # None when the session was created
    new_status: SessionStatus
    occurred_at: datetime
    actor_id: Optional[str] = None


@dataclass(frozen=True)
class BalanceChange:
    """Committed ledger movement, published to credit.balances"""

    account_id: str
    previous_balance: int
    new_balance: int
    delta: int
    reason: str
    occurred_at: datetime
    session_id: Optional[str] = None


@dataclass
class LedgerEntry:
    """Audit row for one balance change"""

    account_id: str
    delta: int
    balance_after: int
    reason: str
    created_at: datetime
    session_id: Optional[str] = None
