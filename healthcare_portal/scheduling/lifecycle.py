"""
Appointment status state machine and the authorization rules around it.

Every mutating entry point consults ``ALLOWED_TRANSITIONS`` through
``ensure_transition`` so that no invalid status is ever persisted.
"""
import enum
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from ..core.exceptions import ForbiddenError, InvalidRequestError
from .calendar import BusinessWindow, is_weekend
from .identity import Identity, PatientIdentity, ProviderIdentity, owns


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    # late arrival correction
    AppointmentStatus.NO_SHOW: frozenset({AppointmentStatus.COMPLETED}),
}


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    return AppointmentStatus(new) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def ensure_transition(current: AppointmentStatus, new: AppointmentStatus) -> None:
    """Raise InvalidRequestError unless current -> new is in the table."""
    if not can_transition(current, new):
        raise InvalidRequestError(
            f"Invalid status transition from {AppointmentStatus(current).value} "
            f"to {AppointmentStatus(new).value}"
        )


def authorize_status_change(identity: Identity, appointment) -> None:
    """Only the provider assigned to the appointment may change its status."""
    if not isinstance(identity, ProviderIdentity) or identity.id != appointment.provider_id:
        raise ForbiddenError("Only the assigned provider can update appointment status")


def authorize_cancellation(identity: Identity, appointment, now: datetime) -> None:
    """Assigned patient or provider may cancel a future, scheduled appointment."""
    if not owns(identity, appointment.patient_id, appointment.provider_id):
        raise ForbiddenError("You can only cancel your own appointments")

    if appointment.appointment_at <= now:
        raise InvalidRequestError("Cannot cancel past appointments")

    if appointment.status != AppointmentStatus.SCHEDULED:
        raise InvalidRequestError(
            f"Cannot cancel {AppointmentStatus(appointment.status).value} appointments"
        )


def authorize_booking(identity: Identity, patient_id: int) -> None:
    """A patient can only book for themselves; providers may book for anyone."""
    if isinstance(identity, PatientIdentity) and identity.id != patient_id:
        raise ForbiddenError("You can only book appointments for yourself")


def authorize_read(identity: Identity, appointment) -> None:
    if not owns(identity, appointment.patient_id, appointment.provider_id):
        raise ForbiddenError("You can only access your own appointments")


def validate_booking_time(timestamp: datetime, window: BusinessWindow, now: datetime) -> None:
    """Policy checks on a requested start time, independent of bookings."""
    if timestamp <= now:
        raise InvalidRequestError("Appointment must be scheduled for a future date and time")

    moment = timestamp.time()
    if not window.contains(moment):
        raise InvalidRequestError(
            f"Appointments can only be scheduled between "
            f"{window.start:%H:%M} and {window.end:%H:%M}"
        )

    if window.in_lunch(moment):
        raise InvalidRequestError(
            f"Appointments cannot be scheduled during the lunch break "
            f"({window.lunch_start:%H:%M}-{window.lunch_end:%H:%M})"
        )

    if is_weekend(timestamp):
        raise InvalidRequestError("Appointments can only be scheduled on weekdays")

    if not window.is_on_grid(moment):
        minutes = int(window.slot_length.total_seconds() // 60)
        raise InvalidRequestError(
            f"Appointments must start on a {minutes}-minute slot boundary"
        )

    if timestamp <= now + window.lead_time:
        minutes = int(window.lead_time.total_seconds() // 60)
        raise InvalidRequestError(
            f"Appointments must be booked at least {minutes} minutes in advance"
        )


def validate_note(note: Optional[str], max_length: int = 500) -> Optional[str]:
    """Trim the note; blank notes become None."""
    if note is None:
        return None
    note = note.strip()
    if not note:
        return None
    if len(note) > max_length:
        raise InvalidRequestError(f"Notes cannot exceed {max_length} characters")
    return note
