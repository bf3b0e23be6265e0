"""
Slot generation over the business day.

Slots are derived values: a start time on the slot grid of a business
window. They are never stored and carry no booking state of their own.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Union

SATURDAY = 5

DayLike = Union[date, datetime]


def as_date(day: DayLike) -> date:
    """Drop the time-of-day component, if any."""
    if isinstance(day, datetime):
        return day.date()
    return day


def is_weekend(day: DayLike) -> bool:
    return as_date(day).weekday() >= SATURDAY


@dataclass(frozen=True)
class BusinessWindow:
    """Opening hours, slot size, lunch break and minimum booking lead time."""

    start: time = time(9, 0)
    end: time = time(17, 0)
    slot_length: timedelta = timedelta(minutes=30)
    lunch_start: time = time(12, 0)
    lunch_end: time = time(13, 0)
    lead_time: timedelta = timedelta(minutes=30)

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError("Business day must start before it ends")
        if self.slot_length <= timedelta(0):
            raise ValueError("Slot length must be positive")
        if self.lunch_start > self.lunch_end:
            raise ValueError("Lunch break must start before it ends")
        if self.lunch_start < self.start or self.lunch_end > self.end:
            raise ValueError("Lunch break must fall inside the business day")
        if self.lead_time < timedelta(0):
            raise ValueError("Lead time cannot be negative")

    def contains(self, moment: time) -> bool:
        """True when `moment` lies in [start, end)."""
        return self.start <= moment < self.end

    def in_lunch(self, moment: time) -> bool:
        """True when `moment` lies in [lunch_start, lunch_end)."""
        return self.lunch_start <= moment < self.lunch_end

    def is_on_grid(self, moment: time) -> bool:
        """True when `moment` is a whole number of slots after opening."""
        offset = _seconds(moment) - _seconds(self.start)
        return offset >= 0 and offset % self.slot_length.total_seconds() == 0

    def slot_times(self) -> Iterator[time]:
        """Yield the slot start times of a single business day."""
        cursor = datetime.combine(date.min, self.start)
        closing = datetime.combine(date.min, self.end)
        while cursor < closing:
            moment = cursor.time()
            if not self.in_lunch(moment):
                yield moment
            cursor += self.slot_length


def _seconds(moment: time) -> float:
    return moment.hour * 3600 + moment.minute * 60 + moment.second + moment.microsecond / 1e6


@dataclass(frozen=True)
class DaySlots:
    """Restartable sequence of slot start datetimes for one day.

    Iterating produces a fresh generator each time, so the same instance can
    be walked any number of times and always yields the same values.
    """

    day: date
    window: BusinessWindow
    closed: bool = field(default=False)

    def __iter__(self) -> Iterator[datetime]:
        if self.closed:
            return
        for moment in self.window.slot_times():
            yield datetime.combine(self.day, moment)

    def __len__(self) -> int:
        return sum(1 for _ in self)


def generate_slots(day: DayLike, window: BusinessWindow, today: date) -> DaySlots:
    """Candidate slot start times for `day`.

    Weekends and days before `today` produce an empty sequence.
    """
    target = as_date(day)
    closed = is_weekend(target) or target < as_date(today)
    return DaySlots(day=target, window=window, closed=closed)


def week_days(start: DayLike, days: int = 7) -> List[date]:
    """Consecutive calendar days beginning at `start`."""
    first = as_date(start)
    return [first + timedelta(days=offset) for offset in range(days)]
