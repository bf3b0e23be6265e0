from .calendar import DayLike, as_date


def has_same_day_conflict(repository, patient_id: int, provider_id: int, day: DayLike) -> bool:
    """True when the patient already holds a scheduled appointment with the
    provider on the same calendar day, at any time."""
    return repository.has_scheduled_on_day(patient_id, provider_id, as_date(day))
