"""Unit tests for slot resolution"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from buddy_booking.domain.availability import AvailabilityGrid, TimeBucket, Weekday
from buddy_booking.domain.models import Slot
from buddy_booking.domain.slots import is_offerable, resolve_slots

SEOUL = ZoneInfo("Asia/Seoul")
MONDAY = date(2026, 10, 19)
MONDAY_MIDNIGHT = datetime(2026, 10, 19, tzinfo=SEOUL)


def test_single_monday_morning_over_a_week():
    """Grid {Mon: [morning]} from a Monday yields exactly that Monday's morning"""
    grid = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING)])

    slots = list(resolve_slots("buddy-1", grid, MONDAY_MIDNIGHT, SEOUL, horizon_days=7))

    assert slots == [Slot(buddy_id="buddy-1", date=MONDAY, bucket=TimeBucket.MORNING)]
    assert slots[0].starts_at(SEOUL) == datetime(2026, 10, 19, 12, 0, tzinfo=SEOUL)


def test_slots_ordered_by_date_then_bucket():
    grid = AvailabilityGrid(
        [
            (Weekday.TUE, TimeBucket.EVENING),
            (Weekday.TUE, TimeBucket.EARLY_MORNING),
            (Weekday.MON, TimeBucket.AFTERNOON),
        ]
    )

    slots = list(resolve_slots("b", grid, MONDAY_MIDNIGHT, SEOUL))

    assert [(s.date, s.bucket) for s in slots] == [
        (MONDAY, TimeBucket.AFTERNOON),
        (MONDAY + timedelta(days=1), TimeBucket.EARLY_MORNING),
        (MONDAY + timedelta(days=1), TimeBucket.EVENING),
    ]
    assert slots == sorted(slots)


def test_full_grid_stays_within_window_and_grid():
    grid = AvailabilityGrid([(day, bucket) for day in Weekday for bucket in TimeBucket])
    now = datetime(2026, 10, 21, 13, 30, tzinfo=SEOUL)  # Wednesday afternoon

    sequence = resolve_slots("b", grid, now, SEOUL, horizon_days=7)
    slots = list(sequence)

    # Wednesday's 09:00 and 12:00 buckets have started; 6 full days follow
    assert len(slots) == 2 + 6 * 4
    for slot in slots:
        starts_at = slot.starts_at(SEOUL)
        assert now <= starts_at < now + timedelta(days=7)
        assert grid.offers(slot.date.weekday(), slot.bucket)


def test_never_returns_cells_missing_from_grid():
    grid = AvailabilityGrid([(Weekday.SAT, TimeBucket.EVENING)])

    slots = list(resolve_slots("b", grid, MONDAY_MIDNIGHT, SEOUL, horizon_days=14))

    assert [s.date for s in slots] == [date(2026, 10, 24), date(2026, 10, 31)]
    assert all(s.bucket is TimeBucket.EVENING for s in slots)


def test_sequence_is_restartable():
    grid = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING), (Weekday.THU, TimeBucket.EVENING)])
    sequence = resolve_slots("b", grid, MONDAY_MIDNIGHT, SEOUL)

    first = list(sequence)
    second = list(sequence)

    assert first == second
    assert len(first) == 2


def test_empty_grid_or_zero_horizon_yields_nothing():
    full = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING)])

    assert list(resolve_slots("b", AvailabilityGrid(), MONDAY_MIDNIGHT, SEOUL)) == []
    assert list(resolve_slots("b", full, MONDAY_MIDNIGHT, SEOUL, horizon_days=0)) == []


def test_now_in_another_zone_is_converted():
    """Sunday 16:00 UTC is already Monday 01:00 in Seoul"""
    grid = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING), (Weekday.SUN, TimeBucket.MORNING)])
    now = datetime(2026, 10, 18, 16, 0, tzinfo=timezone.utc)

    slots = list(resolve_slots("b", grid, now, SEOUL, horizon_days=1))

    assert slots == [Slot("b", MONDAY, TimeBucket.MORNING)]


def test_is_offerable_checks_grid_horizon_and_start():
    grid = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING)])
    slot = Slot("b", MONDAY, TimeBucket.MORNING)

    assert is_offerable(slot, grid, MONDAY_MIDNIGHT, 7, SEOUL)
    # Already started
    assert not is_offerable(slot, grid, datetime(2026, 10, 19, 12, 0, 1, tzinfo=SEOUL), 7, SEOUL)
    # Not in grid
    assert not is_offerable(Slot("b", MONDAY, TimeBucket.EVENING), grid, MONDAY_MIDNIGHT, 7, SEOUL)
    # Next Monday is outside a 7 day horizon
    assert not is_offerable(Slot("b", MONDAY + timedelta(days=7), TimeBucket.MORNING), grid, MONDAY_MIDNIGHT, 7, SEOUL)
    # In the past
    assert not is_offerable(Slot("b", MONDAY - timedelta(days=7), TimeBucket.MORNING), grid, MONDAY_MIDNIGHT, 7, SEOUL)


def test_sequence_membership_matches_offerability():
    grid = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING)])
    sequence = resolve_slots("b", grid, MONDAY_MIDNIGHT, SEOUL)

    assert Slot("b", MONDAY, TimeBucket.MORNING) in sequence
    assert Slot("b", MONDAY, TimeBucket.EVENING) not in sequence
    assert "not a slot" not in sequence
