"""Weekly availability grid: day of week x fixed time buckets"""

from datetime import time
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Mapping, Set, Tuple

from buddy_booking.domain.exceptions import InvalidAvailabilityError


class Weekday(IntEnum):
    """Day of week, numbered like date.weekday()"""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6

    @property
    def key(self) -> str:
        return self.name.lower()


class TimeBucket(IntEnum):
    """One of four daily conversation windows"""

    EARLY_MORNING = 0
    MORNING = 1
    AFTERNOON = 2
    EVENING = 3

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def start_time(self) -> time:
        return time(hour=FIRST_BUCKET_HOUR + BUCKET_SPACING_HOURS * self.value)


# Bucket i starts at 09:00 + 3h * i in the configured slot timezone
FIRST_BUCKET_HOUR = 9
BUCKET_SPACING_HOURS = 3

DAY_LABELS: Dict[str, List[str]] = {
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
    "ko": ["월", "화", "수", "목", "금", "토", "일"],
}

# Editor labels only; the hour ranges in them are not session times.
# Clients show a slot's time from TimeBucket.start_time / SlotResponse.starts_at.
BUCKET_LABELS: Dict[str, List[str]] = {
    "en": [
        "Early Morning (12AM-9AM)",
        "Morning (9AM-12PM)",
        "Afternoon (12PM-6PM)",
        "Evening (6PM-12AM)",
    ],
    "ko": ["새벽 (12AM-9AM)", "오전 (9AM-12PM)", "오후 (12PM-6PM)", "저녁 (6PM-12AM)"],
}


def _build_lookup(enum_cls, labels: Dict[str, List[str]]) -> Dict[str, int]:
    lookup = {member.key: member.value for member in enum_cls}
    for locale_labels in labels.values():
        for index, label in enumerate(locale_labels):
            lookup[label.lower()] = index
    return lookup


_DAY_LOOKUP = _build_lookup(Weekday, DAY_LABELS)
_BUCKET_LOOKUP = _build_lookup(TimeBucket, BUCKET_LABELS)


def parse_weekday(value) -> Weekday:
    """Accept a Weekday, its index, canonical key or any localized label"""
    if isinstance(value, Weekday):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Weekday(value)
        except ValueError as e:
            raise InvalidAvailabilityError(f"Unknown day: {value!r}") from e
    if isinstance(value, str) and value.strip().lower() in _DAY_LOOKUP:
        return Weekday(_DAY_LOOKUP[value.strip().lower()])
    raise InvalidAvailabilityError(f"Unknown day: {value!r}")


def parse_bucket(value) -> TimeBucket:
    """Accept a TimeBucket, its index, canonical key or any localized label"""
    if isinstance(value, TimeBucket):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return TimeBucket(value)
        except ValueError as e:
            raise InvalidAvailabilityError(f"Unknown time bucket: {value!r}") from e
    if isinstance(value, str) and value.strip().lower() in _BUCKET_LOOKUP:
        return TimeBucket(_BUCKET_LOOKUP[value.strip().lower()])
    raise InvalidAvailabilityError(f"Unknown time bucket: {value!r}")


class AvailabilityGrid:
    """
    Set of (weekday, bucket) cells.

    A buddy's grid lists the windows they offer to talk; a learner's grid lists
    preferred windows and is advisory only. Both share this structure and the
    same bucket enumeration regardless of the locale labels used to edit them.
    """

    def __init__(self, cells: Iterable[Tuple[Weekday, TimeBucket]] = ()):
        self._cells: Set[Tuple[Weekday, TimeBucket]] = set()
        for day, bucket in cells:
            self.set(day, bucket)

    def offers(self, day, bucket) -> bool:
        return (parse_weekday(day), parse_bucket(bucket)) in self._cells

    def set(self, day, bucket, offered: bool = True) -> None:
        cell = (parse_weekday(day), parse_bucket(bucket))
        if offered:
            self._cells.add(cell)
        else:
            self._cells.discard(cell)

    def toggle(self, day, bucket) -> bool:
        """Flip one cell and return its new state"""
        offered = not self.offers(day, bucket)
        self.set(day, bucket, offered)
        return offered

    def buckets_for(self, day) -> List[TimeBucket]:
        weekday = parse_weekday(day)
        return sorted(bucket for cell_day, bucket in self._cells if cell_day == weekday)

    def is_empty(self) -> bool:
        return not self._cells

    def __iter__(self) -> Iterator[Tuple[Weekday, TimeBucket]]:
        return iter(sorted(self._cells))

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AvailabilityGrid):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"AvailabilityGrid({self.to_dict()!r})"

    def to_dict(self) -> Dict[str, List[str]]:
        """Canonical form, e.g. {"mon": ["morning"]}; empty days are omitted"""
        result: Dict[str, List[str]] = {}
        for day, bucket in self:
            result.setdefault(day.key, []).append(bucket.key)
        return result

    def localized(self, locale: str = "en") -> Dict[str, List[str]]:
        """Same shape as to_dict() but keyed by display labels"""
        if locale not in DAY_LABELS:
            raise InvalidAvailabilityError(f"Unsupported locale: {locale!r}")
        result: Dict[str, List[str]] = {}
        for day, bucket in self:
            result.setdefault(DAY_LABELS[locale][day], []).append(BUCKET_LABELS[locale][bucket])
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Iterable] | None) -> "AvailabilityGrid":
        """Parse {day: [bucket, ...]} using canonical keys or localized labels"""
        grid = cls()
        if not data:
            return grid
        for day, buckets in data.items():
            if isinstance(buckets, (str, bytes)):
                raise InvalidAvailabilityError(f"Buckets for {day!r} must be a list")
            for bucket in buckets:
                grid.set(day, bucket)
        return grid
