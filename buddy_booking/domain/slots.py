"""Slot resolution: turn a weekly availability grid into concrete bookable instants"""

from datetime import datetime, timedelta, tzinfo
from typing import Iterator

from buddy_booking.domain.availability import AvailabilityGrid, TimeBucket, Weekday
from buddy_booking.domain.models import Slot
from buddy_booking.utils.date_utils import iter_dates, localize

DEFAULT_HORIZON_DAYS = 7


class SlotSequence:
    """
    Lazy, finite, restartable view over a buddy's offerable slots.

    Every call to iter() starts from the first date again, so the same
    sequence can be rendered, filtered and re-checked without re-resolving.
    Slots are ordered by date, then bucket.
    """

    def __init__(
        self,
        buddy_id: str,
        grid: AvailabilityGrid,
        now: datetime,
        horizon_days: int,
        tz: tzinfo,
    ):
        self.buddy_id = buddy_id
        self.grid = grid
        self.now = localize(now, tz)
        self.horizon_days = horizon_days
        self.tz = tz

    @property
    def window_end(self) -> datetime:
        return self.now + timedelta(days=self.horizon_days)

    def __iter__(self) -> Iterator[Slot]:
        for day in iter_dates(self.now.date(), self.horizon_days):
            for bucket in self.grid.buckets_for(Weekday(day.weekday())):
                slot = Slot(buddy_id=self.buddy_id, date=day, bucket=bucket)
                # Buckets earlier today have already started
                if slot.starts_at(self.tz) < self.now:
                    continue
                yield slot

    def __contains__(self, slot: object) -> bool:
        if not isinstance(slot, Slot):
            return False
        return is_offerable(slot, self.grid, self.now, self.horizon_days, self.tz)

    def __repr__(self) -> str:
        return (
            f"SlotSequence(buddy_id={self.buddy_id!r}, now={self.now.isoformat()}, "
            f"horizon_days={self.horizon_days})"
        )


def resolve_slots(
    buddy_id: str,
    grid: AvailabilityGrid,
    now: datetime,
    tz: tzinfo,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> SlotSequence:
    """
    Produce the bookable slots for a buddy over the next `horizon_days` dates.

    Args:
        buddy_id: Buddy whose grid is resolved
        grid: Weekly (weekday, bucket) availability
        now: Reference instant; naive values are read as wall-clock time in tz
        tz: Zone used for grid weekdays, bucket clocks and now
        horizon_days: Number of consecutive calendar dates, starting at now's date

    Returns:
        SlotSequence yielding one Slot per offered (date, bucket) not yet started
    """
    return SlotSequence(buddy_id, grid, now, horizon_days, tz)


def is_offerable(
    slot: Slot,
    grid: AvailabilityGrid,
    now: datetime,
    horizon_days: int,
    tz: tzinfo,
) -> bool:
    """True iff slot is in the grid, inside the date horizon and not yet started"""
    local_now = localize(now, tz)
    first_day = local_now.date()
    if not first_day <= slot.date < first_day + timedelta(days=horizon_days):
        return False
    if not grid.offers(Weekday(slot.date.weekday()), TimeBucket(slot.bucket)):
        return False
    return slot.starts_at(tz) >= local_now
