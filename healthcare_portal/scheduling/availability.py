"""
Availability of a single slot and of a provider's whole day.
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Collection, List, Optional

from .calendar import BusinessWindow, DayLike, as_date, generate_slots, is_weekend


class SlotProblem(str, enum.Enum):
    OUTSIDE_HOURS = "outside_hours"
    LUNCH_BREAK = "lunch_break"
    WEEKEND = "weekend"
    TOO_SOON = "too_soon"
    BOOKED = "booked"


@dataclass(frozen=True)
class Slot:
    start: datetime
    is_available: bool


def find_slot_problem(
    timestamp: datetime,
    window: BusinessWindow,
    now: datetime,
    booked: Collection[datetime],
) -> Optional[SlotProblem]:
    """First reason `timestamp` cannot be booked, or None when it is free.

    `booked` holds the start times of the provider's scheduled appointments.
    """
    moment = timestamp.time()
    if not window.contains(moment):
        return SlotProblem.OUTSIDE_HOURS
    if window.in_lunch(moment):
        return SlotProblem.LUNCH_BREAK
    if is_weekend(timestamp):
        return SlotProblem.WEEKEND
    if timestamp <= now + window.lead_time:
        return SlotProblem.TOO_SOON
    if timestamp in booked:
        return SlotProblem.BOOKED
    return None


class AvailabilityChecker:
    """Answers availability questions against an appointment repository."""

    def __init__(self, repository, window: BusinessWindow, clock: Callable[[], datetime] = datetime.now):
        self.repository = repository
        self.window = window
        self.clock = clock

    def problem(self, provider_id: int, timestamp: datetime) -> Optional[SlotProblem]:
        # Cheap checks first so the repository is only hit for plausible slots.
        problem = find_slot_problem(timestamp, self.window, self.clock(), ())
        if problem is not None:
            return problem
        if self.repository.is_booked(provider_id, timestamp):
            return SlotProblem.BOOKED
        return None

    def is_available(self, provider_id: int, timestamp: datetime) -> bool:
        return self.problem(provider_id, timestamp) is None

    def slots_for_day(self, provider_id: int, day: DayLike) -> List[Slot]:
        now = self.clock()
        slots = generate_slots(day, self.window, today=now.date())
        if slots.closed:
            return []

        booked = set(self.repository.booked_times(provider_id, as_date(day)))
        return [
            Slot(start=start, is_available=find_slot_problem(start, self.window, now, booked) is None)
            for start in slots
        ]

    def slots_for_days(self, provider_id: int, days: List[date]) -> List[Slot]:
        result: List[Slot] = []
        for day in days:
            result.extend(self.slots_for_day(provider_id, day))
        return result
