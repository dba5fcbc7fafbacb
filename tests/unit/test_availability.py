"""Unit tests for the availability grid"""

from datetime import time

import pytest

from buddy_booking.domain.availability import (
    AvailabilityGrid,
    TimeBucket,
    Weekday,
    parse_bucket,
    parse_weekday,
)
from buddy_booking.domain.exceptions import InvalidAvailabilityError


def test_bucket_start_times_are_three_hours_apart():
    """Bucket i starts at 09:00 + 3h * i"""
    assert TimeBucket.EARLY_MORNING.start_time == time(9, 0)
    assert TimeBucket.MORNING.start_time == time(12, 0)
    assert TimeBucket.AFTERNOON.start_time == time(15, 0)
    assert TimeBucket.EVENING.start_time == time(18, 0)


def test_parse_accepts_keys_indexes_and_both_locales():
    assert parse_weekday("mon") is Weekday.MON
    assert parse_weekday("Tue") is Weekday.TUE
    assert parse_weekday("수") is Weekday.WED
    assert parse_weekday(6) is Weekday.SUN

    assert parse_bucket("morning") is TimeBucket.MORNING
    assert parse_bucket("Afternoon (12PM-6PM)") is TimeBucket.AFTERNOON
    assert parse_bucket("저녁 (6PM-12AM)") is TimeBucket.EVENING
    assert parse_bucket(0) is TimeBucket.EARLY_MORNING


@pytest.mark.parametrize("value", ["noon", "", 4, -1, True, None])
def test_parse_bucket_rejects_unknown_values(value):
    with pytest.raises(InvalidAvailabilityError):
        parse_bucket(value)


def test_parse_weekday_rejects_unknown_values():
    with pytest.raises(InvalidAvailabilityError):
        parse_weekday("someday")
    with pytest.raises(InvalidAvailabilityError):
        parse_weekday(7)


def test_grid_has_no_duplicate_cells():
    grid = AvailabilityGrid()
    grid.set("mon", "morning")
    grid.set(Weekday.MON, TimeBucket.MORNING)
    grid.set("월", "오전 (9AM-12PM)")

    assert len(grid) == 1
    assert grid.buckets_for("mon") == [TimeBucket.MORNING]


def test_toggle_flips_a_cell():
    grid = AvailabilityGrid()
    assert grid.toggle("fri", "evening") is True
    assert grid.offers(Weekday.FRI, TimeBucket.EVENING)
    assert grid.toggle("fri", "evening") is False
    assert grid.is_empty()


def test_from_dict_mixes_locales_into_one_canonical_grid():
    korean = AvailabilityGrid.from_dict({"월": ["오전 (9AM-12PM)", "저녁 (6PM-12AM)"], "토": ["오후 (12PM-6PM)"]})
    english = AvailabilityGrid.from_dict({"Mon": ["Morning (9AM-12PM)", "evening"], "sat": ["afternoon"]})

    assert korean == english
    assert korean.to_dict() == {"mon": ["morning", "evening"], "sat": ["afternoon"]}


def test_to_dict_round_trips_and_orders_buckets():
    grid = AvailabilityGrid([(Weekday.SUN, TimeBucket.EVENING), (Weekday.SUN, TimeBucket.EARLY_MORNING)])
    data = grid.to_dict()

    assert data == {"sun": ["early_morning", "evening"]}
    assert AvailabilityGrid.from_dict(data) == grid


def test_localized_uses_display_labels():
    grid = AvailabilityGrid([(Weekday.MON, TimeBucket.MORNING)])

    assert grid.localized("en") == {"Mon": ["Morning (9AM-12PM)"]}
    assert grid.localized("ko") == {"월": ["오전 (9AM-12PM)"]}
    with pytest.raises(InvalidAvailabilityError):
        grid.localized("fr")


def test_from_dict_rejects_unknown_keys_and_bare_strings():
    with pytest.raises(InvalidAvailabilityError):
        AvailabilityGrid.from_dict({"funday": ["morning"]})
    with pytest.raises(InvalidAvailabilityError):
        AvailabilityGrid.from_dict({"mon": ["brunch"]})
    with pytest.raises(InvalidAvailabilityError):
        AvailabilityGrid.from_dict({"mon": "morning"})


def test_empty_inputs_give_empty_grid():
    assert AvailabilityGrid.from_dict(None).is_empty()
    assert AvailabilityGrid.from_dict({}).to_dict() == {}
